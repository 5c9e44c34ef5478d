class ErrorCodes:
    SUCCESS = 0
    ERR_NETWORK = 101
    ERR_NOT_CONNECTED = 102
    ERR_INVALID_NICKNAME = 201
    ERR_SESSION_ACTIVE = 301
    ERR_INTERNAL = 500


class PairChatError(Exception):
    def __init__(self, code, message):
        self.code = code
        self.message = message
        super().__init__(f"[{code}] {message}")
