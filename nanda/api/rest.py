"""REST API for a NANDA agent.

Endpoints:
  GET    /                          - Service banner + endpoint map
  GET    /api/health                - Health check
  GET    /api/status                - Agent status
  GET    /api/capabilities          - Agent capabilities
  POST   /api/send                  - Send a message through the bridge
  POST   /api/receive_message       - Process an inbound message
  GET    /api/agents/list           - Agents served by this process
  GET    /api/improvers             - Registered improvers + active one
  PUT    /api/improvers/active      - Select the active improver
  DELETE /api/improvers/{name}      - Remove an improver (an improver named "active"
                                      is reachable here too)
  POST   /api/improve               - Improve text without storing it
  GET    /api/conversations         - List conversations
  POST   /api/conversations         - Create an empty conversation
  GET    /api/conversations/{id}    - Conversation detail
  DELETE /api/conversations/{id}    - Delete a conversation

Every response uses the envelope {success, data, timestamp} or
{success: false, error, code, timestamp}.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any
from uuid import uuid4

from pydantic import ValidationError
from starlette.applications import Starlette
from starlette.exceptions import HTTPException
from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.routing import Route

from nanda.bridge import BridgeNotRunningError
from nanda.improvers import DEFAULT_IMPROVER
from nanda.schemas import (
    HealthCheckResult,
    HealthServices,
    Message,
    MessageContent,
    MessageProcessingOptions,
    utcnow,
)

if TYPE_CHECKING:
    from nanda.agent import NANDA

logger = logging.getLogger(__name__)

API_VERSION = "1.0.0"

ENDPOINTS = {
    "health": "/api/health",
    "status": "/api/status",
    "capabilities": "/api/capabilities",
    "send": "/api/send",
    "receive": "/api/receive_message",
    "agents": "/api/agents/list",
    "improvers": "/api/improvers",
    "improve": "/api/improve",
    "conversations": "/api/conversations",
}


def success_response(data: Any, status_code: int = 200) -> JSONResponse:
    return JSONResponse(
        {"success": True, "data": data, "timestamp": utcnow().isoformat()},
        status_code=status_code,
    )


def error_response(message: str, code: str, status_code: int) -> JSONResponse:
    return JSONResponse(
        {"success": False, "error": message, "code": code, "timestamp": utcnow().isoformat()},
        status_code=status_code,
    )


async def _json_body(request: Request) -> dict[str, Any] | None:
    try:
        body = await request.json()
    except Exception:
        return None
    return body if isinstance(body, dict) else None


def _invalid_request(exc: ValidationError) -> JSONResponse:
    errors = exc.errors()
    field = ".".join(str(part) for part in errors[0]["loc"]) if errors else "body"
    logger.debug("Rejected request body: %s", exc)
    return error_response(f"Invalid field '{field}'", "INVALID_REQUEST", 400)


def create_app(agent: NANDA) -> Starlette:
    """Create the Starlette ASGI app with all routes bound to one agent."""

    async def root(request: Request) -> JSONResponse:
        return JSONResponse(
            {
                "message": "NANDA Agent API Server",
                "version": API_VERSION,
                "agent_id": agent.settings.agent_id,
                "endpoints": ENDPOINTS,
            }
        )

    async def health(request: Request) -> JSONResponse:
        """GET /api/health - Health check."""
        running = agent.is_running
        registered = agent.registry_client.is_registered
        result = HealthCheckResult(
            status="healthy" if running else "degraded",
            services=HealthServices(agent=running, api=True, registry=registered),
        )
        return success_response(result.model_dump(mode="json"))

    async def status(request: Request) -> JSONResponse:
        """GET /api/status - Agent status."""
        return success_response(agent.get_status().model_dump(mode="json"))

    async def capabilities(request: Request) -> JSONResponse:
        return success_response(agent.get_capabilities().model_dump(mode="json"))

    async def send(request: Request) -> JSONResponse:
        """POST /api/send - Send a message through the bridge."""
        body = await _json_body(request)
        if body is None:
            return error_response("Invalid JSON body", "INVALID_JSON", 400)

        text = body.get("message")
        if not text:
            return error_response("Message is required", "MISSING_MESSAGE", 400)

        try:
            message = Message(
                id=f"msg_{uuid4().hex}",
                role="assistant",
                content=[MessageContent(type="text", content=str(text))],
                conversation_id=body.get("conversation_id") or f"conv_{uuid4().hex}",
            )
        except ValidationError as e:
            return _invalid_request(e)
        try:
            await agent.bridge.send_message(message)
        except BridgeNotRunningError as e:
            return error_response(str(e), "BRIDGE_NOT_RUNNING", 503)
        except Exception as e:
            logger.error("Error in send endpoint: %s", e)
            return error_response("Internal server error", "INTERNAL_ERROR", 500)

        return success_response(
            {
                "message_id": message.id,
                "conversation_id": message.conversation_id,
                "timestamp": message.timestamp.isoformat(),
                "status": "sent",
            }
        )

    async def receive_message(request: Request) -> JSONResponse:
        """POST /api/receive_message - Store and improve an inbound message."""
        body = await _json_body(request)
        if body is None:
            return error_response("Invalid JSON body", "INVALID_JSON", 400)

        text = body.get("message")
        if not text:
            return error_response("Message is required", "MISSING_MESSAGE", 400)

        role = body.get("role", "user")
        if role not in ("user", "assistant", "system"):
            return error_response(f"Invalid role '{role}'", "INVALID_ROLE", 400)

        try:
            message = Message(
                id=body.get("message_id") or f"msg_{uuid4().hex}",
                role=role,
                content=[MessageContent(type="text", content=str(text))],
                conversation_id=body.get("conversation_id") or f"conv_{uuid4().hex}",
            )
            options = MessageProcessingOptions(
                improve_message=body.get("improve_message", True) is not False,
                improver_name=body.get("improver_name"),
            )
        except ValidationError as e:
            return _invalid_request(e)

        try:
            result = await agent.process_message(message, options)
        except Exception as e:
            logger.error("Error in receive endpoint: %s", e)
            return error_response("Internal server error", "INTERNAL_ERROR", 500)

        return success_response(
            {
                "message_id": message.id,
                "conversation_id": message.conversation_id,
                "timestamp": message.timestamp.isoformat(),
                "status": "received",
                "result": result.model_dump(mode="json"),
            }
        )

    async def list_agents(request: Request) -> JSONResponse:
        return success_response(
            [
                {
                    "id": agent.settings.agent_id,
                    "name": f"NANDA Agent {agent.settings.agent_id}",
                    "status": "running" if agent.is_running else "stopped",
                    "port": agent.settings.api_port,
                }
            ]
        )

    # ------------------------------------------------------------------
    # Improvers
    # ------------------------------------------------------------------

    async def list_improvers(request: Request) -> JSONResponse:
        improver = agent.improver
        return success_response({"improvers": improver.list(), "active": improver.get_active()})

    async def set_active_improver(request: Request) -> JSONResponse:
        """PUT /api/improvers/active - body {name}."""
        body = await _json_body(request)
        if body is None:
            return error_response("Invalid JSON body", "INVALID_JSON", 400)

        name = body.get("name")
        if not name or not isinstance(name, str):
            return error_response("Missing or invalid 'name' field", "MISSING_NAME", 400)
        if not agent.improver.set_active(name):
            return error_response(f"Improver not found: {name}", "IMPROVER_NOT_FOUND", 404)
        return success_response({"active": name})

    async def remove_improver(request: Request) -> JSONResponse:
        name = request.path_params["name"]
        if name == DEFAULT_IMPROVER:
            return error_response("Cannot remove default improver", "PROTECTED_IMPROVER", 400)
        if not agent.improver.remove(name):
            return error_response(f"Improver not found: {name}", "IMPROVER_NOT_FOUND", 404)
        return success_response({"removed": name, "active": agent.improver.get_active()})

    async def improve(request: Request) -> JSONResponse:
        """POST /api/improve - body {message, improver?}. Nothing is stored."""
        body = await _json_body(request)
        if body is None:
            return error_response("Invalid JSON body", "INVALID_JSON", 400)

        text = body.get("message")
        if text is None:
            return error_response("Message is required", "MISSING_MESSAGE", 400)

        name = body.get("improver")
        if name is not None and not isinstance(name, str):
            return error_response("Invalid field 'improver'", "INVALID_REQUEST", 400)
        if name:
            result = await agent.improver.improve_with(name, str(text))
        else:
            result = await agent.improver.improve(str(text))
        return success_response(result.model_dump(mode="json"))

    # ------------------------------------------------------------------
    # Conversations
    # ------------------------------------------------------------------

    async def list_conversations(request: Request) -> JSONResponse:
        conversations = agent.get_all_conversations()
        return success_response(
            [
                {
                    "id": c.id,
                    "message_count": len(c.messages),
                    "created_at": c.created_at.isoformat(),
                    "updated_at": c.updated_at.isoformat(),
                    "metadata": c.metadata,
                }
                for c in conversations
            ]
        )

    async def create_conversation(request: Request) -> JSONResponse:
        metadata = None
        if await request.body():
            body = await _json_body(request)
            if body is None:
                return error_response("Invalid JSON body", "INVALID_JSON", 400)
            metadata = body.get("metadata")
        try:
            conversation = agent.create_conversation(metadata)
        except ValidationError as e:
            return _invalid_request(e)
        return success_response(conversation.model_dump(mode="json"), status_code=201)

    async def get_conversation(request: Request) -> JSONResponse:
        conversation = agent.get_conversation(request.path_params["id"])
        if conversation is None:
            return error_response("Conversation not found", "CONVERSATION_NOT_FOUND", 404)
        return success_response(conversation.model_dump(mode="json"))

    async def delete_conversation(request: Request) -> JSONResponse:
        conversation_id = request.path_params["id"]
        if not agent.delete_conversation(conversation_id):
            return error_response("Conversation not found", "CONVERSATION_NOT_FOUND", 404)
        return success_response({"deleted": conversation_id})

    async def not_found(request: Request, exc: HTTPException) -> JSONResponse:
        return error_response("Endpoint not found", "NOT_FOUND", 404)

    async def method_not_allowed(request: Request, exc: HTTPException) -> JSONResponse:
        return error_response("Method not allowed", "METHOD_NOT_ALLOWED", 405)

    routes = [
        Route("/", root),
        Route("/api/health", health),
        Route("/api/status", status),
        Route("/api/capabilities", capabilities),
        Route("/api/send", send, methods=["POST"]),
        Route("/api/receive_message", receive_message, methods=["POST"]),
        Route("/api/agents/list", list_agents),
        Route("/api/improvers", list_improvers),
        Route("/api/improvers/active", set_active_improver, methods=["PUT"]),
        Route("/api/improvers/{name}", remove_improver, methods=["DELETE"]),
        Route("/api/improve", improve, methods=["POST"]),
        Route("/api/conversations", list_conversations),
        Route("/api/conversations", create_conversation, methods=["POST"]),
        Route("/api/conversations/{id}", get_conversation),
        Route("/api/conversations/{id}", delete_conversation, methods=["DELETE"]),
    ]

    return Starlette(
        routes=routes,
        exception_handlers={404: not_found, 405: method_not_allowed},
    )
