"""
Repository Exceptions - Errors raised by local repository validation

SQLAlchemy errors are never wrapped: they reach the caller unchanged.
"""


class RepositoryError(Exception):
    """Base class for errors raised by the repository layer itself"""
    pass


class UndefinedMethodError(RepositoryError, AttributeError):
    """Raised when a magic method name has no supported prefix"""
    pass


class MagicMethodArgumentError(RepositoryError, TypeError):
    """Raised when a magic method is called without its field value"""
    pass


class UnknownFieldError(RepositoryError, AttributeError):
    """Raised when a field is neither a mapped column nor a relationship"""
    pass


class InvalidObjectError(RepositoryError, TypeError):
    """Raised when an object of the wrong class is handed to a repository"""
    pass


class ObjectFactoryError(RepositoryError, RuntimeError):
    """Raised when the object factory returns something the repository can't manage"""
    pass


class InvalidCriteriaError(RepositoryError, ValueError):
    """Raised when criteria is neither a mapping nor a Query"""
    pass


class InvalidListenerError(RepositoryError, TypeError):
    """Raised when a listener is neither a callable nor a class"""
    pass


class InvalidSubscriberError(RepositoryError, ValueError):
    """Raised when something other than an EventSubscriber is disabled"""
    pass


class NoResultsError(RepositoryError, LookupError):
    """Raised by the *_or_fail finders when nothing matches"""
    pass


def describe_type(value) -> str:
    """Name used in error messages for a value of unexpected type"""
    if value is None:
        return 'None'
    return type(value).__name__
