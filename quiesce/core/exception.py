class QuiesceError(Exception):
    pass


class BindError(QuiesceError):
    def __init__(self, host: str, port: int) -> None:
        super().__init__(f"Failed to bind listener on '{host}:{port}'")
        self.host = host
        self.port = port
