from .registration import RegistrationService

__all__ = ["RegistrationService"]
