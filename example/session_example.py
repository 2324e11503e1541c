from loguru import logger

from inventory_session import LocalWalletProvider, ProviderGateway, SessionController
from inventory_session.engine.events import (
    SessionChangedEvent,
    StatusEvent,
    TransactionConfirmedEvent,
    TransactionFailedEvent,
)
from inventory_session.servers import InventoryServer


# Development wallet: reads EVM_PRIVATE_KEY (and optionally INVENTORY_RPC_URL / EVM_INFURA_KEY) from .env
wallet = LocalWalletProvider(chain_id=11155111)

controller = SessionController(ProviderGateway(wallet))

# ✨ HTTP bridge - the controller is started and stopped with the app lifespan
app = InventoryServer(controller, title="Inventory Session API")


@app.hook(StatusEvent)
async def on_status(event):
    """Mirror every status line to the log."""
    logger.info(f"[{event.level.value}] {event.message}")


@app.hook(SessionChangedEvent)
async def on_session(event):
    session = event.session
    logger.info(
        f"Session {session.generation}: {session.connection_state.value} "
        f"as {session.wallet_address} on {session.network_name or session.chain_id}"
    )


@app.hook(TransactionConfirmedEvent)
async def on_confirmed(event):
    logger.success(f"✅ {event.outcome.message} ({event.outcome.tx_hash})")


@app.hook(TransactionFailedEvent)
async def on_failed(event):
    logger.error(f"❌ {event.outcome.message}")


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="localhost", port=8000, log_level="debug")
