"""
SecretInventoryManagement Smart Contract ABI Module

ABI definitions for the inventory contract, split the same way the contract
surface is used: commands (state-changing), queries (views and public
getters), and the combined interface the binding is built from.

Usage:
    from INVENTORY_ABI import get_inventory_abi, COMMAND_FUNCTIONS

    if function_name in COMMAND_FUNCTIONS: ...

    contract = web3.eth.contract(address=contract_address, abi=get_inventory_abi())
    stats = await contract.functions.getContractStats().call()
"""

from typing import Any, Dict, FrozenSet, List


def _inputs(*pairs) -> List[Dict[str, str]]:
    return [{"name": name, "type": abi_type} for name, abi_type in pairs]


def get_command_abi() -> List[Dict[str, Any]]:
    """
    Get ABI entries for every state-changing function.

    Returns:
        List[Dict[str, Any]]: ABI for addInventoryItem, updateStock, placeOrder,
        processOrder, authorizeManager, grantInventoryAccess, emergencyPause
        and deactivateItem.
    """
    def command(name: str, *pairs) -> Dict[str, Any]:
        return {
            "name": name,
            "type": "function",
            "stateMutability": "nonpayable",
            "inputs": _inputs(*pairs),
            "outputs": [],
        }

    return [
        command(
            "addInventoryItem",
            ("_quantity", "uint32"),
            ("_price", "uint64"),
            ("_minStockLevel", "uint32"),
            ("_itemName", "string"),
            ("_supplier", "address"),
        ),
        command("updateStock", ("_itemId", "uint32"), ("_quantityChange", "uint32"), ("_isAddition", "bool")),
        command("placeOrder", ("_itemId", "uint32"), ("_requestedQuantity", "uint32")),
        command("processOrder", ("_orderId", "uint32"), ("_status", "uint8")),
        command("authorizeManager", ("_manager", "address")),
        command("grantInventoryAccess", ("_itemId", "uint32"), ("_user", "address")),
        command("emergencyPause"),
        command("deactivateItem", ("_itemId", "uint32")),
    ]


def get_query_abi() -> List[Dict[str, Any]]:
    """
    Get ABI entries for every read-only function.

    Returns:
        List[Dict[str, Any]]: ABI for the aggregate counters, item/order
        lookups, and the authorizedManagers / suppliers public getters.
    """
    def view(name: str, inputs: List[Dict[str, str]], outputs: List[Dict[str, str]]) -> Dict[str, Any]:
        return {
            "name": name,
            "type": "function",
            "stateMutability": "view",
            "inputs": inputs,
            "outputs": outputs,
        }

    return [
        view("getActiveItemsCount", [], _inputs(("", "uint256"))),
        view("getPendingOrdersCount", [], _inputs(("", "uint256"))),
        view(
            "getItemInfo",
            _inputs(("_itemId", "uint32")),
            _inputs(
                ("itemName", "string"),
                ("supplier", "address"),
                ("isActive", "bool"),
                ("createdAt", "uint256"),
                ("lastUpdated", "uint256"),
            ),
        ),
        view(
            "getOrderInfo",
            _inputs(("_orderId", "uint32")),
            _inputs(
                ("itemId", "uint32"),
                ("status", "uint8"),
                ("createdAt", "uint256"),
                ("processedAt", "uint256"),
            ),
        ),
        view(
            "getContractStats",
            [],
            _inputs(
                ("totalItems", "uint32"),
                ("totalOrders", "uint32"),
                ("activeItemsCount", "uint256"),
                ("pendingOrdersCount", "uint256"),
            ),
        ),
        view("authorizedManagers", _inputs(("", "address")), _inputs(("", "bool"))),
        view(
            "suppliers",
            _inputs(("", "address")),
            _inputs(("isAuthorized", "bool"), ("registeredAt", "uint256")),
        ),
    ]


def get_inventory_abi() -> List[Dict[str, Any]]:
    """Full contract interface used by ContractBinding."""
    return get_command_abi() + get_query_abi()


COMMAND_FUNCTIONS: FrozenSet[str] = frozenset(entry["name"] for entry in get_command_abi())
