from pydantic import BaseModel

class ErrorResponse(BaseModel):
    detail: dict


ERROR_EXAMPLES = {
    400: ("Bad Request", "initialization_error", "Survey initialization failed"),
    404: ("Session Not Found", "session_not_found", "Session not found"),
    409: ("Session Ended", "session_ended", "This conversation has ended"),
    503: ("Service Unavailable", "session_limit", "Too many active sessions"),
    500: ("Chat Error", "chat_error", "Internal Server Error"),
}


def error_response(code: int):
    status, error_code, message = ERROR_EXAMPLES.get(code, ERROR_EXAMPLES[500])
    return {
        "model": ErrorResponse,
        "description": status,
        "content": {
            "application/json": {
                "example": {
                    "detail": {
                        "status": status,
                        "code": error_code,
                        "message": message
                    }
                }
            }
        }
    }
