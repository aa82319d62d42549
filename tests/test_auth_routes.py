from utils.security import check_credentials, hash_password


def test_session_reports_anonymous(client):
    assert client.get('/auth/session').get_json() == {"authorized": False, "role": None}


def test_login_sets_role(client):
    r = client.post('/auth/login', json={"role": "admin", "username": "admin", "password": "Admin#2025"})
    assert r.status_code == 200
    assert client.get('/auth/session').get_json() == {"authorized": True, "role": "admin"}


def test_login_rejects_bad_password_and_unknown_role(client):
    r = client.post('/auth/login', json={"role": "admin", "username": "admin", "password": "nope"})
    assert r.status_code == 401
    r = client.post('/auth/login', json={"role": "owner", "username": "admin", "password": "Admin#2025"})
    assert r.status_code == 400


def test_login_accepts_hashed_config_password(app, client):
    app.config["TEACHER_PASSWORD"] = hash_password("Hashed#99")
    r = client.post('/auth/login', json={"role": "teacher", "username": "teacher@school.com", "password": "Hashed#99"})
    assert r.status_code == 200


def test_logout_clears_session(admin_client):
    admin_client.post('/auth/logout')
    assert admin_client.get('/auth/session').get_json()["authorized"] is False


def test_role_gate(client, teacher_client):
    assert teacher_client.get('/students/').status_code == 403
    teacher_client.post('/auth/logout')
    assert client.get('/students/').status_code == 401


def test_change_password_enforces_rules(admin_client):
    r = admin_client.post('/auth/change-password', json={"currentPassword": "Admin#2025", "newPassword": "short"})
    assert r.status_code == 400
    assert "problems" in r.get_json()

    r = admin_client.post('/auth/change-password', json={"currentPassword": "wrong", "newPassword": "Better#Pass1"})
    assert r.status_code == 400

    r = admin_client.post('/auth/change-password', json={"currentPassword": "Admin#2025", "newPassword": "Better#Pass1"})
    assert r.status_code == 200

    admin_client.post('/auth/logout')
    old = admin_client.post('/auth/login', json={"role": "admin", "username": "admin", "password": "Admin#2025"})
    assert old.status_code == 401
    new = admin_client.post('/auth/login', json={"role": "admin", "username": "admin", "password": "Better#Pass1"})
    assert new.status_code == 200


def test_security_headers(client):
    r = client.get('/health')
    assert r.headers["X-Content-Type-Options"] == "nosniff"
    assert r.headers["X-Frame-Options"] == "SAMEORIGIN"


def test_check_credentials_needs_both_halves():
    stored = hash_password("Admin#2025")
    assert check_credentials("admin", stored, " admin ", "Admin#2025")
    assert check_credentials("admin", "Admin#2025", "admin", "Admin#2025")
    assert not check_credentials("admin", stored, "root", "Admin#2025")
    assert not check_credentials("admin", "Admin#2025", "admin", "admin#2025")
    assert not check_credentials("", "Admin#2025", "", "Admin#2025")
    assert not check_credentials("admin", "", "admin", "")
    assert not check_credentials("admin", "Admin#2025", ["admin"], "Admin#2025")
    assert not check_credentials("admin", "Admin#2025", "admin", 2025)


def test_login_with_non_text_values_is_refused(client):
    r = client.post('/auth/login', json={"role": "admin", "username": {"$ne": ""}, "password": ["Admin#2025"]})
    assert r.status_code == 401
    r = client.post('/auth/login', json=["admin"])
    assert r.status_code == 400
