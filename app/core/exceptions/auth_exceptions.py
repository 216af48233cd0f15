from app.core.exceptions.base_exception import BaseBusinessException
from app.core.response_codes import ResponseCodeEnum


class InvalidPassphraseException(BaseBusinessException):
    def __init__(self, message: str = None):
        super().__init__(ResponseCodeEnum.INVALID_PASSPHRASE, status_code=401, message=message)
