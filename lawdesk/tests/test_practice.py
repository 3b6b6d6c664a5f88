"""
Practice Records Tests
======================

Cases, clients, team members and appointments, including owner scoping.
"""

from conftest import auth_header, register


CASE = {
    "title": "Smith v. Jones",
    "startingDate": "2024-03-01T00:00:00",
    "caseType": "Civil",
    "client": "John Smith",
    "caseDescription": "Contract dispute",
}

CLIENT = {
    "name": "John Smith",
    "dateOfBirth": "1980-05-17T00:00:00",
    "gender": "male",
    "email": "john@example.com",
    "mobile": "+1 555 0100",
    "address": "1 Main St",
}


def _member(email="lawyer@example.com", **extra):
    body = {
        "name": "Ann Lawyer",
        "email": email,
        "mobile": "+1 555 0101",
        "yearsOfExperience": 7,
        "address": {"city": "Springfield", "postalCode": "12345"},
        "lawyerType": "Associate",
        "specialization": "Contracts",
        "password": "memberpass",
    }
    body.update(extra)
    return body


class TestCases:

    def test_case_lifecycle(self, client, user_token):
        headers = auth_header(user_token)
        created = client.post("/api/cases/add-case", headers=headers, json=CASE)
        assert created.status_code == 201
        case = created.json()["data"]
        assert case["title"] == "Smith v. Jones"
        assert case["timer"] == 0 and case["isRunning"] is False

        listing = client.get("/api/cases/get-cases", headers=headers).json()["data"]
        assert [c["id"] for c in listing] == [case["id"]]

        timer = client.put(f"/api/cases/update-case-timer/{case['id']}", headers=headers,
                           json={"timer": 125, "isRunning": True})
        assert timer.status_code == 200
        assert timer.json()["data"]["timer"] == 125
        assert timer.json()["data"]["isRunning"] is True

        fetched = client.get(f"/api/cases/get-case/{case['id']}", headers=headers).json()["data"]
        assert fetched["timer"] == 125

        assert client.delete(f"/api/cases/delete-case/{case['id']}", headers=headers).status_code == 200
        assert client.get(f"/api/cases/get-case/{case['id']}", headers=headers).status_code == 404

    def test_required_fields(self, client, user_token):
        body = {k: v for k, v in CASE.items() if k != "caseType"}
        response = client.post("/api/cases/add-case", headers=auth_header(user_token), json=body)
        assert response.status_code == 400
        assert response.json()["status"] is False

    def test_negative_timer_rejected(self, client, user_token):
        headers = auth_header(user_token)
        case_id = client.post("/api/cases/add-case", headers=headers, json=CASE).json()["data"]["id"]
        response = client.put(f"/api/cases/update-case-timer/{case_id}", headers=headers,
                              json={"timer": -1, "isRunning": False})
        assert response.status_code == 400

    def test_other_users_case_is_hidden(self, client, user_token):
        case_id = client.post("/api/cases/add-case", headers=auth_header(user_token), json=CASE).json()["data"]["id"]
        other = register(client, username="bob", email="bob@example.com")["token"]

        assert client.get(f"/api/cases/get-case/{case_id}", headers=auth_header(other)).status_code == 404
        assert client.delete(f"/api/cases/delete-case/{case_id}", headers=auth_header(other)).status_code == 404
        assert client.get("/api/cases/get-cases", headers=auth_header(other)).json()["data"] == []


class TestClients:

    def test_client_lifecycle(self, client, user_token):
        headers = auth_header(user_token)
        assert client.get("/api/clients/get-client", headers=headers).json()["data"] == []

        created = client.post("/api/clients/add-client", headers=headers, json=CLIENT)
        assert created.status_code == 201
        client_id = created.json()["data"]["id"]

        listing = client.get("/api/clients/get-client", headers=headers).json()["data"]
        assert listing[0]["email"] == "john@example.com"

        assert client.delete(f"/api/clients/delete-client/{client_id}", headers=headers).status_code == 200
        assert client.delete(f"/api/clients/delete-client/{client_id}", headers=headers).status_code == 404

    def test_invalid_email_rejected(self, client, user_token):
        body = dict(CLIENT, email="not-an-email")
        response = client.post("/api/clients/add-client", headers=auth_header(user_token), json=body)
        assert response.status_code == 400


class TestTeamMembers:

    def test_add_and_fetch_without_password(self, client, user_token):
        headers = auth_header(user_token)
        created = client.post("/api/team-member/add-team-member", headers=headers, json=_member())
        assert created.status_code == 201
        member = created.json()["data"]
        assert "password" not in member and "password_hash" not in member
        assert member["address"]["postal_code"] == "12345"

        details = client.get(f"/api/team-member/get-team-member-details/{member['id']}", headers=headers)
        assert details.status_code == 200
        assert details.json()["data"]["specialization"] == "Contracts"

    def test_duplicate_email_conflicts(self, client, user_token):
        headers = auth_header(user_token)
        client.post("/api/team-member/add-team-member", headers=headers, json=_member())
        response = client.post("/api/team-member/add-team-member", headers=headers, json=_member())
        assert response.status_code == 409

    def test_same_email_allowed_at_another_firm(self, client, user_token):
        other = register(client, username="sam", email="sam@example.com")["token"]
        first = client.post("/api/team-member/add-team-member", headers=auth_header(user_token), json=_member())
        second = client.post("/api/team-member/add-team-member", headers=auth_header(other), json=_member())
        assert first.status_code == 201
        assert second.status_code == 201
        assert first.json()["data"]["id"] != second.json()["data"]["id"]

    def test_pagination(self, client, user_token):
        headers = auth_header(user_token)
        for i in range(3):
            client.post("/api/team-member/add-team-member", headers=headers, json=_member(f"m{i}@example.com"))

        page = client.get("/api/team-member/get-team-members?page=2&limit=2", headers=headers).json()["data"]
        assert page["pagination"] == {"total": 3, "page": 2, "limit": 2}
        assert len(page["teamMembers"]) == 1

    def test_delete(self, client, user_token):
        headers = auth_header(user_token)
        member_id = client.post("/api/team-member/add-team-member", headers=headers,
                                json=_member()).json()["data"]["id"]
        assert client.delete(f"/api/team-member/delete-team-member/{member_id}", headers=headers).status_code == 200
        assert client.get(f"/api/team-member/get-team-member-details/{member_id}",
                          headers=headers).status_code == 404


class TestAppointments:

    def _setup(self, client, token):
        headers = auth_header(token)
        client_id = client.post("/api/clients/add-client", headers=headers, json=CLIENT).json()["data"]["id"]
        lawyer_id = client.post("/api/team-member/add-team-member", headers=headers,
                                json=_member()).json()["data"]["id"]
        return client_id, lawyer_id

    def test_appointment_lifecycle(self, client, user_token):
        headers = auth_header(user_token)
        client_id, lawyer_id = self._setup(client, user_token)

        created = client.post("/api/appointments", headers=headers, json={
            "clientId": client_id,
            "lawyerId": lawyer_id,
            "appointmentDate": "2024-06-10T00:00:00",
            "appointmentTime": "3:00 PM",
            "caseNotes": "Initial consultation",
        })
        assert created.status_code == 201
        appointment = created.json()["data"]
        assert appointment["status"] == "Pending"
        assert appointment["clientName"] == "John Smith"

        updated = client.patch(f"/api/appointments/{appointment['id']}/status", headers=headers,
                               json={"status": "Confirmed"})
        assert updated.json()["data"]["status"] == "Confirmed"

        confirmed = client.get("/api/appointments?status=Confirmed", headers=headers).json()["data"]
        assert [a["id"] for a in confirmed] == [appointment["id"]]

        assert client.delete(f"/api/appointments/{appointment['id']}", headers=headers).status_code == 200
        assert client.get("/api/appointments", headers=headers).json()["data"] == []

    def test_invalid_status_rejected(self, client, user_token):
        headers = auth_header(user_token)
        client_id, lawyer_id = self._setup(client, user_token)
        appointment_id = client.post("/api/appointments", headers=headers, json={
            "clientId": client_id, "lawyerId": lawyer_id,
            "appointmentDate": "2024-06-10T00:00:00", "appointmentTime": "10:00 AM",
        }).json()["data"]["id"]

        response = client.patch(f"/api/appointments/{appointment_id}/status", headers=headers,
                                json={"status": "Cancelled"})
        assert response.status_code == 400

    def test_unknown_client_is_404(self, client, user_token):
        _, lawyer_id = self._setup(client, user_token)
        response = client.post("/api/appointments", headers=auth_header(user_token), json={
            "clientId": "missing", "lawyerId": lawyer_id,
            "appointmentDate": "2024-06-10T00:00:00", "appointmentTime": "10:00 AM",
        })
        assert response.status_code == 404
