"""
ZKClear error hierarchy
=======================

Every rejection surfaced by the settlement layer is a ``ZKClearError``.
The subclasses follow the failure groups of the system:

  - VerificationError : key, public-input and proof problems
  - SequencingError   : the caller's view of the chain is stale
  - AuthorizationError: the caller is not allowed to do this
  - InvalidAddress    : a null principal where one is required
  - WithdrawalError   : a withdrawal claim cannot be honoured
  - DepositError      : deposit bookkeeping rejections

Each class carries a stable ``code`` (the class name) and the HTTP status
used by the Flask surface.
"""


class ZKClearError(Exception):
    http_status = 400

    def __init__(self, message=None):
        super().__init__(message or self.__class__.__name__)

    @property
    def code(self):
        return self.__class__.__name__


# ── verification ──

class VerificationError(ZKClearError):
    pass


class InvalidVerifyingKey(VerificationError):
    pass


class InvalidPublicInputs(VerificationError):
    pass


class InvalidProof(VerificationError):
    pass


# ── sequencing ──

class SequencingError(ZKClearError):
    http_status = 409


class InvalidStateRoot(SequencingError):
    pass


class BlockAlreadyProcessed(SequencingError):
    pass


# ── authorization ──

class AuthorizationError(ZKClearError):
    http_status = 403


class OnlySequencer(AuthorizationError):
    pass


class OwnableUnauthorizedAccount(AuthorizationError):
    pass


class InvalidUser(AuthorizationError):
    pass


class InvalidAddress(ZKClearError):
    pass


class InvalidSequencerAddress(InvalidAddress):
    pass


class OwnableInvalidOwner(InvalidAddress):
    pass


class ReentrantCall(ZKClearError):
    http_status = 409


# ── withdrawals ──

class WithdrawalError(ZKClearError):
    pass


class NullifierAlreadyUsed(WithdrawalError):
    http_status = 409


class InvalidMerkleProof(WithdrawalError):
    pass


class InvalidWithdrawalsRoot(WithdrawalError):
    pass


class InvalidAmount(WithdrawalError):
    pass


class InvalidChainId(WithdrawalError):
    pass


# ── deposits ──

class DepositError(ZKClearError):
    pass


class AssetNotRegistered(DepositError):
    http_status = 404


class DepositAlreadyProcessed(DepositError):
    http_status = 409


class NativeDepositNotAllowed(DepositError):
    pass


class InsufficientBalance(DepositError):
    pass
