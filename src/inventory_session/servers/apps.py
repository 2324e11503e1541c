"""
Inventory Session Server - FastAPI bridge for the render surface.

Exposes a ``SessionController`` over HTTP so that a UI which cannot hold the
controller in-process can read session snapshots and issue intents. Every
taxonomy error is answered as ``{"kind": ..., "error": ...}`` with an HTTP
status derived from its kind.
"""

from contextlib import asynccontextmanager
from typing import Any, Callable, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from loguru import logger

from ..engine.events import BaseEvent
from ..engine.exceptions import ErrorKind, InventoryError, SessionNotReady, ValidationError
from ..engine.permissions import PermissionGate
from ..engine.session import SessionController
from ..schemas.bases import TransactionOutcome

ERROR_STATUS_CODES: Dict[ErrorKind, int] = {
    ErrorKind.VALIDATION_ERROR: 400,
    ErrorKind.CONFIGURATION_ERROR: 400,
    ErrorKind.COMMAND_REJECTED: 400,
    ErrorKind.AUTHORIZATION_DENIED: 403,
    ErrorKind.SESSION_NOT_READY: 409,
    ErrorKind.COMMAND_IN_FLIGHT: 409,
    ErrorKind.INVALID_TRANSITION: 409,
    ErrorKind.CHAIN_SWITCH_REJECTED: 409,
    ErrorKind.CONTRACT_NOT_DEPLOYED: 424,
    ErrorKind.INTERFACE_MISMATCH: 424,
    ErrorKind.CONTRACT_UNREACHABLE: 502,
    ErrorKind.QUERY_FAILED: 502,
    ErrorKind.PROVIDER_ERROR: 502,
    ErrorKind.NO_PROVIDER_INSTALLED: 503,
}


def status_code_for(kind: Optional[ErrorKind]) -> int:
    if kind is None:
        return 200
    return ERROR_STATUS_CODES.get(kind, 500)


class InventoryServer(FastAPI):
    """FastAPI server wrapping one SessionController."""

    def __init__(self, controller: SessionController, **fastapi_kwargs):
        """Initialize the inventory session server.

        Args:
            controller: Session controller to expose
            **fastapi_kwargs: FastAPI arguments (title, version, etc.)
        """
        self.controller = controller

        @asynccontextmanager
        async def lifespan(app: FastAPI):
            await controller.start()
            yield
            await controller.stop()

        fastapi_kwargs.setdefault("lifespan", lifespan)
        super().__init__(**fastapi_kwargs)

        self.add_exception_handler(InventoryError, self._handle_inventory_error)
        self._setup_session_routes()
        self._setup_item_routes()
        self._setup_order_routes()
        self._setup_admin_routes()

    def subscribe(self, event_class: type, handler: Callable) -> None:
        """Register an async event handler on the controller's event bus.

        Example:
            ```python
            async def on_session(event: SessionChangedEvent):
                await push_to_ui(event.session)

            app.subscribe(SessionChangedEvent, on_session)
            ```
        """
        self.controller.event_bus.subscribe(event_class, handler)

    def hook(self, event_class: type[BaseEvent]) -> Callable:
        """Decorator for registering event hooks.

        Example:
            @app.hook(StatusEvent)
            async def on_status(event):
                logger.info(event.message)
        """
        def decorator(hook_func: Callable) -> Callable:
            self.controller.event_bus.hook(event_class, hook_func)
            return hook_func
        return decorator

    @staticmethod
    async def _handle_inventory_error(request: Request, exc: InventoryError) -> JSONResponse:
        logger.debug(f"{request.method} {request.url.path} -> {exc.kind.value}: {exc.message}")
        return JSONResponse(status_code=status_code_for(exc.kind), content=exc.to_dict())

    @staticmethod
    async def _payload(request: Request) -> Dict[str, Any]:
        body = await request.body()
        if not body:
            return {}
        try:
            payload = await request.json()
        except ValueError:
            raise ValidationError("Request body must be valid JSON") from None
        if not isinstance(payload, dict):
            raise ValidationError("Request body must be a JSON object")
        return payload

    @staticmethod
    def _outcome_response(outcome: TransactionOutcome) -> JSONResponse:
        return JSONResponse(
            status_code=status_code_for(outcome.error_kind),
            content=outcome.model_dump(mode="json"),
        )

    def _session_response(self) -> Dict[str, Any]:
        session = self.controller.session
        banner = PermissionGate.banner(session)
        return {
            "session": session.model_dump(mode="json"),
            "capabilities": self.controller.capabilities.model_dump(mode="json"),
            "banner": banner.model_dump(mode="json") if banner else None,
        }

    def _setup_session_routes(self) -> None:
        controller = self.controller

        @self.get("/session")
        async def get_session():
            return self._session_response()

        @self.get("/capabilities")
        async def get_capabilities():
            return controller.capabilities.model_dump(mode="json")

        @self.post("/connect")
        async def connect():
            await controller.connect()
            return self._session_response()

        @self.post("/disconnect")
        async def disconnect():
            await controller.disconnect()
            return self._session_response()

        @self.post("/network/switch")
        async def switch_network(request: Request):
            payload = await self._payload(request)
            network = payload.get("network")
            if not network:
                raise ValidationError("Please choose a network")
            await controller.switch_network(network)
            return self._session_response()

        @self.get("/contract/inspect")
        async def inspect_contract():
            report = await controller.inspect_contract()
            return {**report.model_dump(mode="json"), "summary": report.summary()}

    def _setup_item_routes(self) -> None:
        controller = self.controller

        @self.get("/items")
        async def list_items():
            snapshot = await controller.refresh_items()
            if snapshot is None:
                raise SessionNotReady("Session changed while loading items. Please retry.")
            return snapshot.model_dump(mode="json")

        @self.post("/items")
        async def add_item(request: Request):
            payload = await self._payload(request)
            outcome = await controller.add_item(
                name=payload.get("name"),
                quantity=payload.get("quantity"),
                price=payload.get("price"),
                min_stock_level=payload.get("min_stock_level"),
                supplier=payload.get("supplier"),
            )
            return self._outcome_response(outcome)

        @self.post("/items/{item_id}/stock")
        async def update_stock(item_id: str, request: Request):
            payload = await self._payload(request)
            outcome = await controller.update_stock(item_id, payload.get("delta"))
            return self._outcome_response(outcome)

        @self.post("/items/{item_id}/access")
        async def grant_access(item_id: str, request: Request):
            payload = await self._payload(request)
            outcome = await controller.grant_access(item_id, payload.get("user"))
            return self._outcome_response(outcome)

        @self.post("/items/{item_id}/deactivate")
        async def deactivate_item(item_id: str):
            outcome = await controller.deactivate_item(item_id)
            return self._outcome_response(outcome)

    def _setup_order_routes(self) -> None:
        controller = self.controller

        @self.get("/orders")
        async def list_orders():
            snapshot = await controller.refresh_orders()
            if snapshot is None:
                raise SessionNotReady("Session changed while loading orders. Please retry.")
            return snapshot.model_dump(mode="json")

        @self.post("/orders")
        async def place_order(request: Request):
            payload = await self._payload(request)
            outcome = await controller.place_order(payload.get("item_id"), payload.get("quantity"))
            return self._outcome_response(outcome)

        @self.post("/orders/{order_id}/process")
        async def process_order(order_id: str, request: Request):
            payload = await self._payload(request)
            outcome = await controller.process_order(order_id, payload.get("status"))
            return self._outcome_response(outcome)

    def _setup_admin_routes(self) -> None:
        controller = self.controller

        @self.post("/managers")
        async def authorize_manager(request: Request):
            payload = await self._payload(request)
            outcome = await controller.authorize_manager(payload.get("manager"))
            return self._outcome_response(outcome)

        @self.post("/pause")
        async def emergency_pause():
            outcome = await controller.emergency_pause()
            return self._outcome_response(outcome)

        @self.get("/stats")
        async def get_stats():
            stats = await controller.refresh_stats()
            if stats is None:
                raise SessionNotReady("Session changed while loading statistics. Please retry.")
            return stats.model_dump(mode="json")

        @self.get("/suppliers/{address}")
        async def get_supplier(address: str):
            supplier = await controller.lookup_supplier(address)
            return supplier.model_dump(mode="json")
