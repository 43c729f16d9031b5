"""Error taxonomy for route comparison.

Every failure the engine reports is a ``RouteComparisonError`` carrying a
machine-readable ``cause`` code and a ``user_message`` a rider can act on:
correct the input, retry later, or report a bug.
"""


class RouteComparisonError(Exception):
    """Base class for all route comparison failures."""

    cause: str = "internal_error"
    user_message: str = "Something went wrong while comparing routes."

    def __init__(
        self,
        detail: str = "",
        *,
        user_message: str | None = None,
        cause: str | None = None,
    ):
        super().__init__(detail or self.user_message)
        self.detail = detail or self.user_message
        if user_message is not None:
            self.user_message = user_message
        if cause is not None:
            self.cause = cause


class InvalidInputError(RouteComparisonError):
    """A start or end address is missing or blank."""

    cause = "invalid_input"
    user_message = "Please enter both a start and an end location."


class MissingCredentialError(RouteComparisonError):
    """No API key is configured for the map services."""

    cause = "not_configured"
    user_message = "The routing service is not configured."


class AddressNotFoundError(RouteComparisonError):
    """The geocoding service returned no candidates for an address."""

    cause = "address_not_found"
    user_message = "Address not found. Please check the spelling and try again."

    def __init__(self, address: str):
        super().__init__(
            f"No geocoding candidates for {address!r}",
            user_message=f"Address not found: {address!r}.",
        )
        self.address = address


class ResolutionTransportError(RouteComparisonError):
    """The geocoding request failed or returned an unusable payload."""

    cause = "service_unavailable"
    user_message = "The geocoding service is unavailable. Please try again."


class RouteTransportError(RouteComparisonError):
    """The routing request failed or returned an unusable payload."""

    cause = "service_unavailable"
    user_message = "The routing service is unavailable. Please try again."


class NoRouteSectionError(RouteComparisonError):
    """The routing service found no viable path for a variant."""

    cause = "no_route"
    user_message = "No route could be found between these locations."


class MalformedPolylineError(RouteComparisonError):
    """An encoded route path could not be decoded."""

    cause = "malformed_response"
    user_message = (
        "The routing service returned a malformed route. Please report this."
    )


class ServiceTimeoutError(RouteComparisonError, TimeoutError):
    """A geocoding or routing call did not answer within its time budget."""

    cause = "timeout"
    user_message = "The map service took too long to respond. Please try again."


class ComparisonSupersededError(RouteComparisonError):
    """A newer comparison started before this one finished."""

    cause = "superseded"
    user_message = "This comparison was replaced by a newer request."
