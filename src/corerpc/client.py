"""
Bitcoin Core JSON-RPC client.

Issues one request per call and hands the result to the matching decoder
from corerpc.convert. No retries: transport errors and decode errors both
reach the caller.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, TypeVar

import httpx
from loguru import logger

from corerpc.config import RpcSettings
from corerpc.convert import (
    decode_blockchain_info,
    decode_fee_response,
    decode_funded_tx,
    decode_list_unspent,
    decode_mempool_min_fee,
    decode_new_address,
    decode_raw_tx,
    decode_signed_tx,
    decode_txid,
)
from corerpc.errors import DecodeError, RPCError
from corerpc.fields import hash_to_hex, sat_per_kw_to_sat_per_vb, sats_to_btc
from corerpc.models import (
    BlockchainInfo,
    FeeResponse,
    FundedTx,
    ListUnspentResponse,
    MempoolMinFeeResponse,
    NetworkType,
    NewAddress,
    RawTx,
    SignedTx,
)

# Timeout for regular RPC calls (seconds)
DEFAULT_RPC_TIMEOUT = 30.0

T = TypeVar("T")


class BitcoindClient:
    """
    Typed access to a Bitcoin Core node.

    Each method maps to a single RPC; the result is decoded before it is
    returned.
    """

    def __init__(
        self,
        rpc_url: str = "http://127.0.0.1:8332",
        rpc_user: str = "",
        rpc_password: str = "",
        timeout: float = DEFAULT_RPC_TIMEOUT,
        network: NetworkType = NetworkType.MAINNET,
    ):
        self.rpc_url = rpc_url.rstrip("/")
        self.network = network
        self.client = httpx.AsyncClient(timeout=timeout, auth=(rpc_user, rpc_password))
        self._request_id = 0

    @classmethod
    def from_settings(cls, settings: RpcSettings) -> BitcoindClient:
        return cls(
            rpc_url=settings.rpc_url,
            rpc_user=settings.rpc_user,
            rpc_password=settings.rpc_password,
            timeout=settings.timeout,
            network=settings.network,
        )

    async def call(self, method: str, params: list | None = None) -> Any:
        """
        Make an RPC call and return the raw result.

        Raises:
            RPCError: If the node returned a JSON-RPC error or an unparseable body
            httpx.HTTPError: On connection/timeout errors
        """
        self._request_id += 1
        payload = {
            "jsonrpc": "1.0",
            "id": self._request_id,
            "method": method,
            "params": params or [],
        }

        try:
            response = await self.client.post(self.rpc_url, json=payload)
            # Core answers RPC errors with HTTP 500 and a JSON body
            if response.status_code != 500:
                response.raise_for_status()
            data = response.json()
        except httpx.TimeoutException as e:
            logger.error(f"RPC call timed out: {method} - {e}")
            raise
        except httpx.HTTPError as e:
            logger.error(f"RPC call failed: {method} - {e}")
            raise
        except ValueError as e:
            logger.error(f"RPC call returned a non-JSON body: {method} - {e}")
            raise RPCError(method, response.status_code, "response body is not JSON") from e

        if not isinstance(data, dict):
            logger.error(f"RPC call returned a non-object body: {method}")
            raise RPCError(method, response.status_code, "response body is not a JSON object")

        if data.get("error"):
            error_info = data["error"]
            raise RPCError(
                method,
                error_info.get("code", "unknown"),
                error_info.get("message", str(error_info)),
            )

        return data.get("result")

    async def _call_decoded(
        self, method: str, params: list, decoder: Callable[[Any], T]
    ) -> T:
        result = await self.call(method, params)
        try:
            return decoder(result)
        except DecodeError as e:
            logger.warning(f"Undecodable {method} response: {e}")
            raise

    async def create_raw_transaction(self, outputs: dict[str, int]) -> RawTx:
        """Create an unfunded transaction paying outputs (address -> sats)."""
        btc_outputs = {address: sats_to_btc(sats) for address, sats in outputs.items()}
        return await self._call_decoded("createrawtransaction", [[], btc_outputs], decode_raw_tx)

    async def fund_raw_transaction(
        self, raw_tx: RawTx, fee_rate_sat_per_kw: int | None = None
    ) -> FundedTx:
        options: dict[str, Any] = {"replaceable": False}
        if fee_rate_sat_per_kw is not None:
            options["fee_rate"] = sat_per_kw_to_sat_per_vb(fee_rate_sat_per_kw)
        funded = await self._call_decoded(
            "fundrawtransaction", [raw_tx.hex, options], decode_funded_tx
        )
        logger.debug(f"Funded transaction, change position {funded.changepos}")
        return funded

    async def sign_raw_transaction_with_wallet(self, tx_hex: str) -> SignedTx:
        signed = await self._call_decoded(
            "signrawtransactionwithwallet", [tx_hex], decode_signed_tx
        )
        if not signed.complete:
            logger.warning("Wallet could not sign all inputs")
        return signed

    async def send_raw_transaction(self, tx_hex: str) -> str:
        """Broadcast a transaction, returns its txid (display hex)."""
        txid = await self._call_decoded("sendrawtransaction", [tx_hex], decode_txid)
        txid_hex = hash_to_hex(txid)
        logger.info(f"Broadcast transaction: {txid_hex}")
        return txid_hex

    async def get_new_address(self, label: str = "") -> NewAddress:
        return await self._call_decoded(
            "getnewaddress",
            [label, "bech32"],
            lambda raw: decode_new_address(raw, self.network),
        )

    async def estimate_smart_fee(self, conf_target: int, mode: str = "ECONOMICAL") -> FeeResponse:
        fee = await self._call_decoded(
            "estimatesmartfee", [conf_target, mode], decode_fee_response
        )
        logger.debug(
            f"Fee estimate for {conf_target} blocks ({mode}): "
            f"{fee.feerate_sat_per_kw} sat/kW, errored={fee.errored}"
        )
        return fee

    async def get_mempool_min_fee(self) -> MempoolMinFeeResponse:
        return await self._call_decoded("getmempoolinfo", [], decode_mempool_min_fee)

    async def get_blockchain_info(self) -> BlockchainInfo:
        info = await self._call_decoded("getblockchaininfo", [], decode_blockchain_info)
        logger.debug(f"Chain tip: {info.chain} {info.latest_height} {info.latest_blockhash_hex}")
        return info

    async def list_unspent(self, min_conf: int = 0) -> ListUnspentResponse:
        utxos = await self._call_decoded(
            "listunspent",
            [min_conf],
            lambda raw: decode_list_unspent(raw, self.network),
        )
        logger.debug(f"listunspent returned {len(utxos)} UTXOs, total {utxos.total_amount} sats")
        return utxos

    async def close(self) -> None:
        await self.client.aclose()

    async def __aenter__(self) -> BitcoindClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()
