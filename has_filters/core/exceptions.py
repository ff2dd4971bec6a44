class HasFiltersError(Exception):
    """Base exception for every error raised while compiling filter rules."""

    def __init__(self, message: str = "Unable to compile filter"):
        self.message = message
        super().__init__(self.message)

    def __str__(self):
        return f"{self.message}"


class InvalidFilterError(HasFiltersError):
    """
    This exception is raised when the filter input is malformed: the rules are not a
    sequence of mappings, a leaf rule is missing a required key, or an operator or
    conjunction name is unknown.
    """

    pass


class UnfilterableAttrError(HasFiltersError):
    """
    This exception is raised when a well-formed rule targets a filter or scope name
    that the model does not expose.
    """

    pass


class UnfilterableJoinError(HasFiltersError):
    """Exception raised when an association target has no registered filter surface."""

    ...


class InvalidFilterParam(HasFiltersError):
    """Exception raised when an operand cannot be turned into the value an operator needs."""

    ...


class FilterTypeMismatchError(HasFiltersError, TypeError):
    """Exception raised when an operator is not allowed for the column's declared type."""

    ...


def registered_exceptions() -> dict:
    """Returns a dictionary of registered exceptions and their default messages."""
    return {
        InvalidFilterError: "The supplied filter is malformed",
        UnfilterableAttrError: "The requested attribute cannot be filtered",
        UnfilterableJoinError: "The requested association cannot be filtered",
        InvalidFilterParam: "The supplied filter parameter is invalid",
        FilterTypeMismatchError: "The filter operator does not apply to this attribute",
    }
