"""Custom exception classes for the profile RAG service."""

from typing import Any, Dict, Optional


class RagException(Exception):
    """Base exception for all profile RAG errors."""

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.status_code = status_code
        self.code = code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for JSON response."""
        return {
            "error": {
                "message": self.message,
                "code": self.code,
                "status_code": self.status_code,
                "details": self.details,
            }
        }


class ValidationError(RagException):
    """Exception raised for validation errors."""

    def __init__(
        self,
        message: str = "Validation failed",
        errors: Optional[Dict[str, Any]] = None,
        details: Optional[Dict[str, Any]] = None,
        code: str = "VALIDATION_ERROR",
    ):
        error_details = details or {}
        if errors:
            error_details["validation_errors"] = errors
        super().__init__(
            message=message,
            status_code=422,
            code=code,
            details=error_details,
        )


class RagDisabledError(ValidationError):
    """Raised when indexing is requested for a profile with RAG disabled."""

    def __init__(self, profile_id: str):
        super().__init__(
            message=f"RAG is not enabled for profile {profile_id}",
            details={"profile_id": profile_id},
            code="RAG_DISABLED",
        )


class EmbeddingModelMissingError(ValidationError):
    """Raised when a profile has no embedding model configured."""

    def __init__(self, profile_id: str):
        super().__init__(
            message=f"No embedding model configured for profile {profile_id}",
            details={"profile_id": profile_id},
            code="EMBEDDING_MODEL_MISSING",
        )


class NoResourcesError(ValidationError):
    """Raised when indexing is requested for a profile without resources."""

    def __init__(self, profile_id: str):
        super().__init__(
            message=f"No resources found for profile {profile_id}",
            details={"profile_id": profile_id},
            code="NO_RESOURCES",
        )


class NotFoundError(RagException):
    """Exception raised when a resource is not found."""

    def __init__(
        self,
        resource: str = "Resource",
        resource_id: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        message = f"{resource} not found"
        if resource_id:
            message += f" with id: {resource_id}"
        error_details = details or {}
        error_details["resource"] = resource
        if resource_id:
            error_details["resource_id"] = resource_id
        super().__init__(
            message=message,
            status_code=404,
            code="NOT_FOUND",
            details=error_details,
        )


class ConflictError(RagException):
    """Exception raised when an operation conflicts with the current state."""

    def __init__(
        self,
        message: str = "Resource conflict",
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            message=message,
            status_code=409,
            code="CONFLICT",
            details=details,
        )


class ChunkingError(RagException):
    """Exception raised for text chunking errors."""

    def __init__(
        self,
        message: str = "Text chunking failed",
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            message=message,
            status_code=500,
            code="CHUNKING_ERROR",
            details=details,
        )


class StorageError(RagException):
    """Exception raised for raw file storage errors."""

    def __init__(
        self,
        message: str = "Storage operation failed",
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            message=message,
            status_code=500,
            code="STORAGE_ERROR",
            details=details,
        )


class DatabaseError(RagException):
    """Exception raised for persistence errors."""

    def __init__(
        self,
        message: str = "Database operation failed",
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            message=message,
            status_code=500,
            code="DATABASE_ERROR",
            details=details,
        )


class ExternalServiceError(RagException):
    """Exception raised when external service calls fail."""

    def __init__(
        self,
        service: str,
        message: Optional[str] = None,
        status_code: int = 502,
        code: str = "EXTERNAL_SERVICE_ERROR",
        details: Optional[Dict[str, Any]] = None,
    ):
        error_message = message or f"External service '{service}' unavailable"
        error_details = details or {}
        error_details["service"] = service
        super().__init__(
            message=error_message,
            status_code=status_code,
            code=code,
            details=error_details,
        )


class EmbeddingError(ExternalServiceError):
    """Exception raised for embedding generation errors."""

    def __init__(
        self,
        message: str = "Embedding generation failed",
        model: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        error_details = details or {}
        if model:
            error_details["model"] = model
        super().__init__(
            service="embedding",
            message=message,
            code="EMBEDDING_ERROR",
            details=error_details,
        )


class VectorStoreError(ExternalServiceError):
    """Exception raised for vector store operation errors."""

    def __init__(
        self,
        message: str = "Vector store operation failed",
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            service="vector_store",
            message=message,
            code="VECTOR_STORE_ERROR",
            details=details,
        )
