class WalletServiceError(Exception):
    pass


class NotFoundError(WalletServiceError):
    pass


class ConflictError(WalletServiceError):
    pass


class InvalidAmountError(WalletServiceError):
    pass


class LimitExceededError(WalletServiceError):
    pass


class BelowMinimumError(WalletServiceError):
    def __init__(self, role, minimum):
        self.role = role
        self.minimum = minimum
        super().__init__(f"Minimum withdraw for {role.value} is {minimum}")


class InsufficientBalanceError(WalletServiceError):
    pass
