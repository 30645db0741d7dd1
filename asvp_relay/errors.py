"""Failure kinds reported by the query, storage and notification layers."""

from enum import Enum


class ErrorKind(str, Enum):
    NOT_FOUND = "NOT_FOUND"
    TRANSPORT_FAILURE = "TRANSPORT_FAILURE"
    MALFORMED_RESPONSE = "MALFORMED_RESPONSE"
    MALFORMED_PAYLOAD = "MALFORMED_PAYLOAD"
    ALREADY_PERSISTED = "ALREADY_PERSISTED"
    STORAGE_FAILURE = "STORAGE_FAILURE"
    DELIVERY_FAILURE = "DELIVERY_FAILURE"
    INTERNAL_ERROR = "INTERNAL_ERROR"


ERROR_MESSAGES: dict[str, str] = {
    ErrorKind.NOT_FOUND: "Registry returned no data",
    ErrorKind.TRANSPORT_FAILURE: "Request to the registry failed",
    ErrorKind.MALFORMED_RESPONSE: "Registry response could not be parsed",
    ErrorKind.MALFORMED_PAYLOAD: "Document payload is missing a file name or content",
    ErrorKind.ALREADY_PERSISTED: "Document already stored, use force overwrite to replace it",
    ErrorKind.STORAGE_FAILURE: "Could not write document to storage",
    ErrorKind.DELIVERY_FAILURE: "Notification channel did not accept the document",
    ErrorKind.INTERNAL_ERROR: "Unexpected error while processing the document",
}


def message_for(kind: ErrorKind) -> str:
    return ERROR_MESSAGES.get(kind, kind.value)
