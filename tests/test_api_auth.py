"""
Unit tests for the HTTP boundary
"""

from app.core.errors import StoreUnavailable
from app.main import app
from app.models import Company, ResetToken, User
from app.routers.api_auth import get_auth_service


def _bearer(token):
    return {"Authorization": f"Bearer {token}"}


class TestHealth:
    def test_health_check(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "ok"


class TestRegisterAndLogin:
    def test_register_then_login(self, client, registration):
        response = client.post("/register", json=registration)
        assert response.status_code == 201
        data = response.json()
        assert data["success"] is True
        assert data["userId"] and data["companyId"]

        response = client.post("/login", json={"email": "a@x.com", "password": "segredo1"})
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "Authenticated"
        assert data["tokenType"] == "bearer"
        assert data["accessToken"]
        assert "reason" not in data

    def test_wrong_password_is_rejected(self, client, registration):
        client.post("/register", json=registration)
        response = client.post("/login", json={"email": "a@x.com", "password": "errada"})
        assert response.status_code == 401
        assert response.json() == {"status": "Rejected", "reason": "InvalidCredentials"}

    def test_unknown_email_gets_same_response(self, client, registration):
        client.post("/register", json=registration)
        wrong = client.post("/login", json={"email": "a@x.com", "password": "errada"})
        unknown = client.post("/login", json={"email": "z@x.com", "password": "errada"})
        assert unknown.status_code == wrong.status_code
        assert unknown.json() == wrong.json()

    def test_duplicate_cnpj(self, client, registration, count_rows):
        client.post("/register", json=registration)
        response = client.post("/register", json={**registration, "email": "b@x.com"})
        assert response.status_code == 409
        assert response.json()["reason"] == "DuplicateCNPJ"
        assert response.json()["success"] is False
        assert count_rows(Company) == 1
        assert count_rows(User) == 1

    def test_duplicate_email(self, client, registration):
        client.post("/register", json=registration)
        response = client.post(
            "/register", json={**registration, "cnpj": "22.222.222/0001-22", "email": "A@x.com"}
        )
        assert response.status_code == 409
        assert response.json()["reason"] == "DuplicateEmail"

    def test_invalid_cnpj(self, client, registration):
        response = client.post("/register", json={**registration, "cnpj": "11.111.111-0001/11"})
        assert response.status_code == 400
        assert response.json()["reason"] == "InvalidCNPJ"

    def test_invalid_whatsapp(self, client, registration, count_rows):
        response = client.post("/register", json={**registration, "whatsapp": "12345"})
        assert response.status_code == 400
        assert response.json()["reason"] == "InvalidPhone"
        assert count_rows(User) == 0

    def test_whatsapp_with_country_code(self, client, registration):
        client.post("/register", json={**registration, "whatsapp": "+55 (11) 91234-5678"})
        login = client.post("/login", json={"email": "a@x.com", "password": "segredo1"}).json()
        me = client.get("/me", headers=_bearer(login["accessToken"])).json()
        assert me["whatsapp"] == "11912345678"

    def test_missing_field_is_422(self, client, registration):
        body = dict(registration)
        body.pop("companyName")
        assert client.post("/register", json=body).status_code == 422


class TestPasswordRotation:
    def _temporary_login(self, client, registration):
        client.post("/register", json=registration)
        session = client.post("/login", json={"email": "a@x.com", "password": "segredo1"}).json()
        response = client.post(
            f"/users/{session['userId']}/temporary-password",
            headers=_bearer(session["accessToken"]),
        )
        assert response.status_code == 200
        temp = response.json()["temporaryPassword"]
        return client.post("/login", json={"email": "a@x.com", "password": temp}).json()

    def test_rotation_flow(self, client, registration, notifier):
        login = self._temporary_login(client, registration)
        assert login["status"] == "PasswordRotationRequired"
        assert "accessToken" not in login
        assert len(notifier.temporary) == 1

        response = client.post(
            "/password/change",
            json={"userId": login["userId"], "newPassword": "novasenha"},
            headers=_bearer(login["rotationToken"]),
        )
        assert response.status_code == 200
        assert response.json()["success"] is True

        response = client.post("/login", json={"email": "a@x.com", "password": "novasenha"})
        assert response.json()["status"] == "Authenticated"

    def test_rotation_token_does_not_open_session(self, client, registration):
        login = self._temporary_login(client, registration)
        response = client.get("/me", headers=_bearer(login["rotationToken"]))
        assert response.status_code == 401
        assert response.json()["reason"] == "NotAuthorized"

    def test_change_requires_matching_token(self, client, registration):
        login = self._temporary_login(client, registration)
        body = {"userId": login["userId"], "newPassword": "novasenha"}

        assert client.post("/password/change", json=body).status_code == 401
        response = client.post(
            "/password/change",
            json={**body, "userId": "outro"},
            headers=_bearer(login["rotationToken"]),
        )
        assert response.status_code == 401

    def test_weak_password(self, client, registration):
        login = self._temporary_login(client, registration)
        response = client.post(
            "/password/change",
            json={"userId": login["userId"], "newPassword": "123"},
            headers=_bearer(login["rotationToken"]),
        )
        assert response.status_code == 400
        assert response.json()["reason"] == "WeakPassword"

    def test_admin_cannot_touch_other_company(self, client, registration):
        client.post("/register", json=registration)
        login = client.post("/login", json={"email": "a@x.com", "password": "segredo1"}).json()
        other = client.post(
            "/register", json={**registration, "email": "b@y.com", "cnpj": "22.222.222/0001-22"}
        ).json()

        response = client.post(
            f"/users/{other['userId']}/temporary-password", headers=_bearer(login["accessToken"])
        )
        assert response.status_code == 401

    def test_unknown_and_foreign_user_look_the_same(self, client, registration):
        client.post("/register", json=registration)
        login = client.post("/login", json={"email": "a@x.com", "password": "segredo1"}).json()
        other = client.post(
            "/register", json={**registration, "email": "b@y.com", "cnpj": "22.222.222/0001-22"}
        ).json()
        headers = _bearer(login["accessToken"])

        foreign = client.post(f"/users/{other['userId']}/temporary-password", headers=headers)
        unknown = client.post("/users/nao-existe/temporary-password", headers=headers)

        # não dá pra descobrir quais ids existem
        assert foreign.status_code == unknown.status_code == 401
        assert foreign.json() == unknown.json()
        assert unknown.json()["reason"] == "NotAuthorized"


class TestMe:
    def test_profile(self, client, registration):
        client.post("/register", json=registration)
        login = client.post("/login", json={"email": "a@x.com", "password": "segredo1"}).json()

        response = client.get("/me", headers=_bearer(login["accessToken"]))
        assert response.status_code == 200
        data = response.json()
        assert data["email"] == "a@x.com"
        assert data["fullName"] == "Ana Souza"
        assert data["isAdmin"] is True
        assert data["temporaryPassword"] is False
        assert "passwordHash" not in data

    def test_requires_token(self, client):
        assert client.get("/me").status_code == 401


class TestResetFlow:
    def test_unknown_email_is_accepted_without_token(self, client, registration, count_rows):
        client.post("/register", json=registration)
        response = client.post("/password/reset/request", json={"email": "ninguem@x.com"})
        assert response.status_code == 202
        assert response.json() == {"accepted": True}
        assert count_rows(ResetToken) == 0

    def test_request_and_consume(self, client, registration, notifier):
        client.post("/register", json=registration)
        response = client.post("/password/reset/request", json={"email": "a@x.com"})
        assert response.json() == {"accepted": True}
        token = notifier.resets[0]["token"]

        response = client.post(
            "/password/reset/consume", json={"token": token, "newPassword": "novasenha"}
        )
        assert response.status_code == 200
        assert response.json()["success"] is True

        response = client.post(
            "/password/reset/consume", json={"token": token, "newPassword": "outrasenha"}
        )
        assert response.status_code == 400
        assert response.json()["reason"] == "InvalidOrExpiredToken"

        response = client.post("/login", json={"email": "a@x.com", "password": "novasenha"})
        assert response.json()["status"] == "Authenticated"


class TestStoreUnavailable:
    def test_login_returns_503_with_retry_after(self, client):
        class DownService:
            def login(self, email, password):
                raise StoreUnavailable()

        app.dependency_overrides[get_auth_service] = lambda: DownService()
        response = client.post("/login", json={"email": "a@x.com", "password": "segredo1"})

        assert response.status_code == 503
        assert response.headers["Retry-After"] == "1"
        assert response.json()["reason"] == "StoreUnavailable"
        assert response.json()["success"] is False
