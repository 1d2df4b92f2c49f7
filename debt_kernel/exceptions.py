"""
Typed Exception Hierarchy for the Debt Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Collection workflows are driven by callers that must react differently to
"this debt is not yours", "the graph forbids that move" and "someone else
already resolved this request".  Parsing message strings for that is
fragile, so:

  1. Every error has a TYPED exception class (catch by type, not message)
  2. Every exception has a CODE attribute (machine-readable, API-safe)
  3. Exceptions carry structured DATA (not just a message string)

Example:
    try:
        service.resolve(request_id, supervisor_id, approve=True)
    except StaleAuthorizationError as e:
        api_response(code=e.code, debt=e.debt_id, state=e.current_state)

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

All exceptions inherit from DebtKernelError:

    DebtKernelError (base)
    |
    +-- InvalidEntityError
    |
    +-- DebtError
    |   +-- DebtNotFoundError
    |   +-- DebtNotAssignedError
    |
    +-- TransitionError
    |   +-- IllegalTransitionError
    |
    +-- AuthorizationError
    |   +-- AuthorizationRequestNotFoundError
    |   +-- SupervisorNotAuthorizedError
    |   +-- AuthorizationAlreadyResolvedError
    |   +-- StaleAuthorizationError
    |
    +-- SupervisorError
    |   +-- NoActiveSupervisorsError
    |
    +-- ConditionError
    |   +-- MalformedConditionError
    |
    +-- ConfigurationError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category        | Code                            | When Raised
----------------|---------------------------------|------------------------------------
Entity          | INVALID_ENTITY                  | Factory rejected a field value
----------------|---------------------------------|------------------------------------
Debt            | DEBT_NOT_FOUND                  | Debt ID doesn't exist
                | DEBT_NOT_ASSIGNED               | Debt assigned to another collector
----------------|---------------------------------|------------------------------------
Transition      | TRANSITION_NOT_PERMITTED        | No edge in the transition graph
----------------|---------------------------------|------------------------------------
Authorization   | AUTHORIZATION_REQUEST_NOT_FOUND | Request ID doesn't exist
                | SUPERVISOR_NOT_AUTHORIZED       | Resolver is not the assignee
                | AUTHORIZATION_ALREADY_RESOLVED  | Request is not pending
                | STALE_AUTHORIZATION             | Debt left the origin state
----------------|---------------------------------|------------------------------------
Supervisor      | NO_ACTIVE_SUPERVISORS           | Nobody to assign a request to
----------------|---------------------------------|------------------------------------
Condition       | MALFORMED_CONDITION             | Condition tree failed to parse
----------------|---------------------------------|------------------------------------
Configuration   | CONFIGURATION_ERROR             | Invalid settings or policy pack

===============================================================================
"""


class DebtKernelError(Exception):
    """
    Base exception for all debt kernel errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "DEBT_KERNEL_ERROR"


class InvalidEntityError(DebtKernelError):
    """A domain factory rejected one of its inputs."""

    code: str = "INVALID_ENTITY"

    def __init__(self, entity: str, field: str, reason: str):
        self.entity = entity
        self.field = field
        self.reason = reason
        super().__init__(f"Invalid {entity}.{field}: {reason}")


# Debt-related exceptions


class DebtError(DebtKernelError):
    """Base exception for debt-related errors."""

    code: str = "DEBT_ERROR"


class DebtNotFoundError(DebtError):
    """Debt with given ID was not found."""

    code: str = "DEBT_NOT_FOUND"

    def __init__(self, debt_id: str):
        self.debt_id = debt_id
        super().__init__(f"debt not found: {debt_id}")


class DebtNotAssignedError(DebtError):
    """Debt is not assigned to the collector acting on it."""

    code: str = "DEBT_NOT_ASSIGNED"

    def __init__(self, debt_id: str, collector_id: str):
        self.debt_id = debt_id
        self.collector_id = collector_id
        super().__init__(
            f"debt not assigned to collector: debt {debt_id}, "
            f"collector {collector_id}"
        )


# Transition exceptions


class TransitionError(DebtKernelError):
    """Base exception for state-transition errors."""

    code: str = "TRANSITION_ERROR"


class IllegalTransitionError(TransitionError):
    """The transition graph has no edge for the requested move."""

    code: str = "TRANSITION_NOT_PERMITTED"

    def __init__(self, origin_state: str, destination_state: str, debt_id: str | None = None):
        self.origin_state = origin_state
        self.destination_state = destination_state
        self.debt_id = debt_id
        super().__init__(
            f"transition not permitted: {origin_state} -> {destination_state}"
        )


# Authorization exceptions


class AuthorizationError(DebtKernelError):
    """Base exception for authorization workflow errors."""

    code: str = "AUTHORIZATION_ERROR"


class AuthorizationRequestNotFoundError(AuthorizationError):
    """Authorization request with given ID was not found."""

    code: str = "AUTHORIZATION_REQUEST_NOT_FOUND"

    def __init__(self, request_id: str):
        self.request_id = request_id
        super().__init__(f"authorization request not found: {request_id}")


class SupervisorNotAuthorizedError(AuthorizationError):
    """The resolving supervisor is not the one assigned to the request."""

    code: str = "SUPERVISOR_NOT_AUTHORIZED"

    def __init__(self, request_id: str, supervisor_id: str):
        self.request_id = request_id
        self.supervisor_id = supervisor_id
        super().__init__(
            f"supervisor not authorized: {supervisor_id} on request {request_id}"
        )


class AuthorizationAlreadyResolvedError(AuthorizationError):
    """The request has already left the pending status."""

    code: str = "AUTHORIZATION_ALREADY_RESOLVED"

    def __init__(self, request_id: str, status: str):
        self.request_id = request_id
        self.status = status
        super().__init__(f"already resolved: request {request_id} is {status}")


class StaleAuthorizationError(AuthorizationError):
    """
    The debt moved away from the request's origin state before approval.

    Approving would apply a transition that was requested against a state
    the debt no longer has.
    """

    code: str = "STALE_AUTHORIZATION"

    def __init__(self, request_id: str, debt_id: str, expected_state: str, current_state: str):
        self.request_id = request_id
        self.debt_id = debt_id
        self.expected_state = expected_state
        self.current_state = current_state
        super().__init__(
            f"debt no longer in origin state: debt {debt_id} is {current_state}, "
            f"request {request_id} expected {expected_state}"
        )


# Supervisor exceptions


class SupervisorError(DebtKernelError):
    """Base exception for supervisor directory errors."""

    code: str = "SUPERVISOR_ERROR"


class NoActiveSupervisorsError(SupervisorError):
    """No active supervisor exists to receive an authorization request."""

    code: str = "NO_ACTIVE_SUPERVISORS"

    def __init__(self) -> None:
        super().__init__("no active supervisors available")


# Condition exceptions


class ConditionError(DebtKernelError):
    """Base exception for rule condition errors."""

    code: str = "CONDITION_ERROR"


class MalformedConditionError(ConditionError):
    """A raw condition could not be parsed into a condition tree."""

    code: str = "MALFORMED_CONDITION"

    def __init__(self, reason: str, fragment: object = None):
        self.reason = reason
        self.fragment = fragment
        super().__init__(f"Malformed condition: {reason}")


# Configuration exceptions


class ConfigurationError(DebtKernelError):
    """Settings or a policy pack failed validation."""

    code: str = "CONFIGURATION_ERROR"

    def __init__(self, setting: str, reason: str):
        self.setting = setting
        self.reason = reason
        super().__init__(f"Invalid configuration {setting}: {reason}")
