__all__ = ["NotAuthorizedException", "AccessDenied", "NotFound", "RecordNotFound", "InvalidArgument",
           "ValidationException", "InvalidState"]


class NotAuthorizedException(Exception):
    LEVEL = 'warning'


# Generic Exceptions
class AccessDenied(Exception):
    LEVEL = 'warning'


class NotFound(Exception):
    LEVEL = 'info'


class InvalidArgument(Exception):
    LEVEL = 'info'


class InvalidState(Exception):
    LEVEL = 'info'


# DynamoDB exceptions
class RecordNotFound(NotFound):
    pass


# Validations exceptions
class ValidationException(InvalidArgument):
    pass
