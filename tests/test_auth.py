from unittest.mock import AsyncMock, patch

import pytest
from sqlalchemy.exc import OperationalError

from app.core.exceptions import InvalidPassphraseException
from app.services.auth_service import AuthService


# 测试口令正确时重定向到文件列表
def test_login_success(client, access_password):
    response = client.post("/login", data={"password": access_password})
    assert response.status_code == 303
    assert response.headers["location"] == "/files"


# 测试口令错误或缺失时返回 401
@pytest.mark.parametrize("data", [{"password": "wrong"}, {"password": ""}, {}])
def test_login_failure(client, data):
    response = client.post("/login", data=data)
    assert response.status_code == 401
    assert response.json()["code"] == 40101


# 测试退出重定向到首页
def test_logout(client):
    response = client.get("/logout")
    assert response.status_code == 303
    assert response.headers["location"] == "/"


# 测试未配置口令时任何输入都不能通过
@pytest.mark.parametrize("configured", ["", None])
def test_unset_passphrase_never_matches(configured):
    service = AuthService(access_password=configured)
    service._access_password = configured
    with pytest.raises(InvalidPassphraseException):
        service.verify_passphrase("")
    with pytest.raises(InvalidPassphraseException):
        service.verify_passphrase("anything")


# 测试服务信息
def test_root(client):
    response = client.get("/")
    assert response.status_code == 200
    assert "/download-multiple" in response.json()["data"]["endpoints"]


# 测试健康检查
@patch("app.api.routes.system_router.ping", new_callable=AsyncMock)
def test_health_ok(mock_ping, client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["data"] == {"status": "ok", "database": "connected"}
    mock_ping.assert_awaited_once()


@patch("app.api.routes.system_router.ping", new_callable=AsyncMock)
def test_health_database_down(mock_ping, client):
    mock_ping.side_effect = OperationalError("SELECT 1", {}, ConnectionRefusedError())
    response = client.get("/health")
    assert response.status_code == 503
    assert response.json()["code"] == 50300
