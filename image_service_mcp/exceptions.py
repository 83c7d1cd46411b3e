"""
Image Service MCP errors
"""


class ImageServiceError(Exception):
    """Base class for image service MCP errors"""
    pass


class ConfigurationError(ImageServiceError):
    """Missing or invalid process configuration (fatal at startup)"""
    pass


class InvalidResponseError(ImageServiceError):
    """The service answered successfully but the payload is unusable"""
    pass


class ServiceRequestError(ImageServiceError):
    """The service rejected a request (non-2xx or unparsable body)"""
    pass
