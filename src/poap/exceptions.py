class PoapCheckError(Exception):
    pass


class ValidationError(PoapCheckError):
    """Wallet address is malformed. Raised before any network I/O."""


class EndpointError(PoapCheckError):
    """A single endpoint attempt failed. Recovered by the failover driver."""


class RpcTransportError(EndpointError):
    pass


class RpcResponseError(EndpointError):
    pass


class ChainMismatchError(EndpointError):
    pass


class AttemptTimeoutError(EndpointError):
    pass


class ChainExhaustedError(PoapCheckError):
    """Every endpoint of a chain failed in every retry round."""

    def __init__(self, chain: str, rounds: int, attempts: int) -> None:
        self.chain = chain
        self.rounds = rounds
        self.attempts = attempts
        super().__init__(
            f"{chain}: all {attempts} endpoint attempts failed over {rounds} round(s)"
        )


class PerTokenLookupError(PoapCheckError):
    """Event id lookup failed for one token; the token is dropped."""

    def __init__(self, token_id: int, cause: Exception) -> None:
        self.token_id = token_id
        self.cause = cause
        super().__init__(f"token {token_id}: {cause}")


class UnexpectedCheckError(PoapCheckError):
    pass
