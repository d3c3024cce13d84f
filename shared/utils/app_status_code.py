class AppStatusCode:
    MISSING_FIELD = "MISSING_FIELD"
    INVALID_DATE = "INVALID_DATE"
    INVALID_DATE_RANGE = "INVALID_DATE_RANGE"
    INVALID_ARGUMENT = "INVALID_ARGUMENT"
    INVALID_ID = "INVALID_ID"
    VALIDATION_ERROR = "VALIDATION_ERROR"

    ROOM_UNAVAILABLE = "ROOM_UNAVAILABLE"
    ALREADY_CANCELLED = "ALREADY_CANCELLED"
    IMMUTABLE_STATE = "IMMUTABLE_STATE"
    INVALID_STATUS_TRANSITION = "INVALID_STATUS_TRANSITION"

    NOT_FOUND = "NOT_FOUND"
    OPERATION_FAILED = "OPERATION_FAILED"
