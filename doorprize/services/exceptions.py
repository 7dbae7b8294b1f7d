from typing import Optional


class VoucherError(Exception):
    """Base error for the voucher workflow; carries the HTTP status to report."""
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(VoucherError):
    status_code = 400


class NominalTooLow(ValidationError):
    def __init__(self, minimal_nominal):
        super().__init__(
            f"Nominal must not be less than Rp.{minimal_nominal} to receive a doorprize voucher."
        )
        self.minimal_nominal = minimal_nominal


class EligibilityConflict(VoucherError):
    status_code = 400

    def __init__(self, existing_code: Optional[str]):
        super().__init__(f"You still have an active draw voucher with code {existing_code}")
        self.existing_code = existing_code


class ConfigUnavailable(VoucherError):
    pass


class VoucherLookupError(VoucherError, LookupError):
    pass


class InsertError(VoucherError):
    pass


class GenerationError(VoucherError):
    pass
