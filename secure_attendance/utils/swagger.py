# secure_attendance/utils/swagger.py
"""Swagger/OpenAPI configuration for the application."""
from secure_attendance.utils.errors import ErrorCode

# Swagger UI configuration
SWAGGER_URL = '/api/docs'
API_URL = '/api/swagger.json'

def _json(schema_ref: str, description: str) -> dict:
    return {
        "description": description,
        "content": {
            "application/json": {
                "schema": {"$ref": f"#/components/schemas/{schema_ref}"}
            }
        }
    }

def _session_id_param() -> dict:
    return {
        "name": "session_id",
        "in": "path",
        "required": True,
        "schema": {"type": "integer"}
    }

def _session_action(summary: str, tag: str = "Sessions") -> dict:
    return {
        "post": {
            "tags": [tag],
            "summary": summary,
            "security": [{"bearerAuth": []}],
            "parameters": [_session_id_param()],
            "responses": {
                "200": _json("Success", "Session updated"),
                "400": _json("Error", "Session is not active (SESSION_INACTIVE)"),
                "403": _json("Error", "Not the session's teacher or an admin (NOT_AUTHORIZED)"),
                "404": _json("Error", "Session not found (SESSION_NOT_FOUND)")
            }
        }
    }

def generate_swagger_spec():
    """Generate OpenAPI/Swagger specification."""
    return {
        "openapi": "3.0.0",
        "info": {
            "title": "Secure Attendance Engine API",
            "description": "Rotating QR tokens, geofencing, device binding and proxy-attempt analysis",
            "version": "1.0.0"
        },
        "servers": [
            {
                "url": "http://127.0.0.1:5000/api",
                "description": "Development server"
            }
        ],
        "components": {
            "securitySchemes": {
                "bearerAuth": {
                    "type": "http",
                    "scheme": "bearer",
                    "bearerFormat": "JWT"
                }
            },
            "schemas": {
                "Success": {
                    "type": "object",
                    "properties": {
                        "error": {"type": "boolean", "example": False},
                        "success": {"type": "boolean", "example": True},
                        "message": {"type": "string"},
                        "data": {"type": "object"}
                    }
                },
                "Error": {
                    "type": "object",
                    "properties": {
                        "error": {"type": "boolean", "example": True},
                        "success": {"type": "boolean", "example": False},
                        "message": {"type": "string"},
                        "code": {"type": "string", "enum": [code.code for code in ErrorCode]},
                        "status_code": {"type": "integer"},
                        "distance": {"type": "integer", "description": "OUTSIDE_RADIUS only"},
                        "allowed_radius": {"type": "number", "description": "OUTSIDE_RADIUS only"}
                    }
                },
                "CreateSession": {
                    "type": "object",
                    "required": ["course_id"],
                    "properties": {
                        "course_id": {"type": "integer"},
                        "classroom_location_id": {"type": "integer", "nullable": True},
                        "time_window_minutes": {"type": "integer", "default": 15},
                        "qr_rotation_interval_seconds": {"type": "integer", "default": 30},
                        "require_gps": {"type": "boolean", "default": True},
                        "require_selfie": {"type": "boolean", "default": False}
                    }
                },
                "QrToken": {
                    "type": "object",
                    "properties": {
                        "session_id": {"type": "integer"},
                        "token": {"type": "string"},
                        "expires_at": {"type": "string", "format": "date-time"},
                        "rotation_seconds": {"type": "integer"},
                        "qr_image": {"type": "string", "description": "PNG data URI"}
                    }
                },
                "MarkAttendance": {
                    "type": "object",
                    "required": ["session_id", "qr_token"],
                    "properties": {
                        "session_id": {"type": "integer"},
                        "qr_token": {"type": "string"},
                        "latitude": {"type": "number"},
                        "longitude": {"type": "number"},
                        "gps_accuracy": {"type": "number"},
                        "device_fingerprint": {"type": "string"},
                        "selfie_url": {"type": "string"}
                    }
                }
            }
        },
        "paths": {
            "/sessions": {
                "post": {
                    "tags": ["Sessions"],
                    "summary": "Start an attendance session",
                    "security": [{"bearerAuth": []}],
                    "requestBody": {
                        "required": True,
                        "content": {
                            "application/json": {
                                "schema": {"$ref": "#/components/schemas/CreateSession"}
                            }
                        }
                    },
                    "responses": {
                        "201": _json("Success", "Session created"),
                        "400": _json("Error", "Invalid request"),
                        "403": _json("Error", "Teacher access required")
                    }
                }
            },
            "/sessions/{session_id}/qr": {
                "post": {
                    "tags": ["Sessions"],
                    "summary": "Generate the current rotating QR token",
                    "security": [{"bearerAuth": []}],
                    "parameters": [_session_id_param()],
                    "responses": {
                        "200": _json("QrToken", "Current token"),
                        "400": _json("Error", "Session is not active (SESSION_INACTIVE)"),
                        "403": _json("Error", "Not authorized (NOT_AUTHORIZED)"),
                        "404": _json("Error", "Session not found (SESSION_NOT_FOUND)")
                    }
                }
            },
            "/sessions/{session_id}/end": _session_action("End an attendance session"),
            "/sessions/{session_id}/cancel": _session_action("Cancel an attendance session"),
            "/attendance/mark": {
                "post": {
                    "tags": ["Attendance"],
                    "summary": "Mark attendance with QR token, location, device and selfie",
                    "security": [{"bearerAuth": []}],
                    "requestBody": {
                        "required": True,
                        "content": {
                            "application/json": {
                                "schema": {"$ref": "#/components/schemas/MarkAttendance"}
                            }
                        }
                    },
                    "responses": {
                        "200": _json("Success", "Attendance recorded"),
                        "400": _json("Error", "Attempt rejected"),
                        "403": _json("Error", "Caller is not a student (NOT_STUDENT)"),
                        "404": _json("Error", "Unknown session (INVALID_SESSION)")
                    }
                }
            },
            "/proxy-attempts": {
                "get": {
                    "tags": ["Proxy Monitoring"],
                    "summary": "Rejected attempts, statistics and suspicious patterns",
                    "security": [{"bearerAuth": []}],
                    "parameters": [
                        {
                            "name": "date_range",
                            "in": "query",
                            "schema": {"type": "string", "enum": ["day", "week", "month", "all"], "default": "week"}
                        },
                        {
                            "name": "attempt_type",
                            "in": "query",
                            "schema": {"type": "string"}
                        },
                        {
                            "name": "student_id",
                            "in": "query",
                            "schema": {"type": "integer"}
                        }
                    ],
                    "responses": {
                        "200": _json("Success", "Analysis"),
                        "403": _json("Error", "Admin access required")
                    }
                }
            }
        }
    }
