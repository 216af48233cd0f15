import secrets
from typing import Optional

from app.core.exceptions import InvalidPassphraseException
from app.services._base_service import BaseService


class AuthService(BaseService):
    """
    单一共享口令校验。
    不签发会话或 cookie，校验通过后由路由重定向到文件列表。
    """

    def __init__(self, access_password: Optional[str] = None):
        super().__init__()
        self._access_password = (
            access_password if access_password is not None else self.settings.security.access_password
        )

    def verify_passphrase(self, password: Optional[str]) -> None:
        expected = self._access_password
        # 未配置口令时一律拒绝
        if not expected or not password:
            self.logger.warning("Login rejected: passphrase missing or not configured.")
            raise InvalidPassphraseException()

        if not secrets.compare_digest(password.encode("utf-8"), expected.encode("utf-8")):
            self.logger.warning("Login rejected: wrong passphrase.")
            raise InvalidPassphraseException()

        self.logger.info("Login accepted.")
