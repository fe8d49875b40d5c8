# wallet_backend/core/client.py

import logging
from typing import List

from solders.hash import Hash
from solders.pubkey import Pubkey
from solders.signature import Signature
from solders.rpc.responses import (
    GetLatestBlockhashResp,
    GetAccountInfoResp,
    GetBalanceResp,
    GetSignatureStatusesResp,
    SendTransactionResp,
)
from solders.transaction_status import TransactionConfirmationStatus

from solana.exceptions import SolanaRpcException
from solana.rpc.async_api import AsyncClient
from solana.rpc.commitment import Commitment, Confirmed
from solana.rpc.core import RPCException
from solana.rpc.types import TokenAccountOpts, TxOpts as SolanaPyTxOpts

from wallet_backend.core.exceptions import (
    ResourceNotFoundError,
    SubmissionRejectedError,
    TransientNetworkError,
)
from wallet_backend.core.ledger import (
    AccountFound,
    AccountInfo,
    AccountLookup,
    AccountLookupFailed,
    AccountNotFound,
    LedgerClient,
    SendOptions,
    STATUS_CONFIRMED,
    STATUS_FAILED,
    STATUS_FINALIZED,
    STATUS_PROCESSED,
    STATUS_UNKNOWN,
    TokenHolding,
    TransactionStatus,
)
from wallet_backend.core.pubkeys import SolanaProgramAddresses

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 30


def _normalize_confirmation_status(confirmation_status) -> str:
    if confirmation_status == TransactionConfirmationStatus.Finalized:
        return STATUS_FINALIZED
    if confirmation_status == TransactionConfirmationStatus.Confirmed:
        return STATUS_CONFIRMED
    if confirmation_status == TransactionConfirmationStatus.Processed:
        return STATUS_PROCESSED
    return STATUS_UNKNOWN


def _is_not_found_message(message: str) -> bool:
    lowered = message.lower()
    return "not found" in lowered or "could not find account" in lowered


def _error_reason(e: Exception) -> str:
    # SolanaRpcException keeps its text in error_msg; str() of it is empty
    reason = getattr(e, "error_msg", None) or str(e) or repr(e)
    cause = e.__cause__
    if cause is not None and str(cause):
        reason = f"{reason}: {cause}"
    return reason



class SolanaClient(LedgerClient):
    def __init__(
        self,
        rpc_endpoint: str,
        commitment: Commitment = Confirmed,
        timeout_seconds: int = DEFAULT_TIMEOUT_SECONDS,
    ) -> None:
        self.rpc_endpoint = rpc_endpoint
        self.async_client = AsyncClient(
            rpc_endpoint, commitment=commitment, timeout=timeout_seconds
        )
        self.commitment = commitment
        self.timeout_seconds = timeout_seconds
        logger.info(f"SolanaClient initialized: {rpc_endpoint} @ {commitment}")

    async def __aenter__(self) -> "SolanaClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def close(self) -> None:
        try:
            await self.async_client.close()
            logger.info("SolanaClient connection closed.")
        except Exception as e:
            logger.warning(f"Error closing SolanaClient: {e}")

    async def get_latest_blockhash(self) -> Hash:
        try:
            resp: GetLatestBlockhashResp = await self.async_client.get_latest_blockhash(
                self.commitment
            )
        except (RPCException, SolanaRpcException) as e:
            logger.error(f"Error get_latest_blockhash: {_error_reason(e)}")
            raise TransientNetworkError(f"failed to get recent blockhash: {_error_reason(e)}") from e
        if not resp.value:
            raise TransientNetworkError("failed to get recent blockhash: empty response")
        return resp.value.blockhash

    async def get_account_info(self, address: Pubkey) -> AccountLookup:
        try:
            resp: GetAccountInfoResp = await self.async_client.get_account_info(
                address, commitment=self.commitment, encoding="base64"
            )
        except RPCException as e:
            if _is_not_found_message(str(e)):
                return AccountNotFound(address=address)
            logger.error(f"RPC error get_account_info {address}: {_error_reason(e)}")
            return AccountLookupFailed(address=address, reason=_error_reason(e))
        except SolanaRpcException as e:
            logger.error(f"Transport error get_account_info {address}: {_error_reason(e)}")
            return AccountLookupFailed(address=address, reason=_error_reason(e))

        if resp.value is None:
            return AccountNotFound(address=address)

        account = resp.value
        return AccountFound(
            account=AccountInfo(
                address=address,
                owner=account.owner,
                lamports=account.lamports,
                data=bytes(account.data),
                executable=account.executable,
            )
        )

    async def get_balance(self, address: Pubkey) -> int:
        try:
            resp: GetBalanceResp = await self.async_client.get_balance(
                address, self.commitment
            )
        except RPCException as e:
            if _is_not_found_message(str(e)):
                raise ResourceNotFoundError(f"account not found: {address}") from e
            logger.error(f"RPC error get_balance {address}: {_error_reason(e)}")
            raise TransientNetworkError(f"failed to get balance for {address}: {_error_reason(e)}") from e
        except SolanaRpcException as e:
            logger.error(f"Transport error get_balance {address}: {_error_reason(e)}")
            raise TransientNetworkError(f"failed to get balance for {address}: {_error_reason(e)}") from e
        return resp.value

    async def get_token_accounts_by_owner(self, owner: Pubkey) -> List[TokenHolding]:
        try:
            resp = await self.async_client.get_token_accounts_by_owner_json_parsed(
                owner,
                TokenAccountOpts(program_id=SolanaProgramAddresses.TOKEN_PROGRAM_ID),
                self.commitment,
            )
        except (RPCException, SolanaRpcException) as e:
            logger.error(f"Error get_token_accounts_by_owner {owner}: {_error_reason(e)}")
            raise TransientNetworkError(f"failed to get token accounts for {owner}: {_error_reason(e)}") from e

        holdings: List[TokenHolding] = []
        for keyed in resp.value or []:
            parsed = getattr(keyed.account.data, "parsed", None)
            if not isinstance(parsed, dict):
                logger.warning(f"Token account {keyed.pubkey} returned non-parsed data, skipping.")
                continue
            info = parsed.get("info", {})
            token_amount = info.get("tokenAmount", {})
            try:
                holdings.append(
                    TokenHolding(
                        account=keyed.pubkey,
                        mint=info["mint"],
                        amount_raw=int(token_amount["amount"]),
                        decimals=int(token_amount["decimals"]),
                    )
                )
            except (KeyError, TypeError, ValueError) as e:
                logger.warning(f"Malformed token account {keyed.pubkey}: {e}")
        return holdings

    async def send_raw_transaction(self, raw: bytes, opts: SendOptions) -> str:
        tx_opts = SolanaPyTxOpts(
            skip_preflight=opts.skip_preflight,
            preflight_commitment=Commitment(opts.commitment),
            max_retries=opts.max_retries,
        )
        try:
            resp: SendTransactionResp = await self.async_client.send_raw_transaction(
                raw, opts=tx_opts
            )
        except RPCException as err:
            logger.warning(f"RPC send_raw_transaction rejected: {_error_reason(err)}")
            raise SubmissionRejectedError(f"failed to send transaction: {_error_reason(err)}") from err
        except SolanaRpcException as err:
            logger.warning(f"send_raw_transaction transport error: {_error_reason(err)}")
            raise TransientNetworkError(f"failed to send transaction: {_error_reason(err)}") from err
        logger.info(f"Tx sent: {resp.value}")
        return str(resp.value)

    async def get_transaction_status(self, signature: str) -> TransactionStatus:
        try:
            sig = Signature.from_string(signature)
            resp: GetSignatureStatusesResp = await self.async_client.get_signature_statuses(
                [sig], search_transaction_history=True
            )
        except (RPCException, SolanaRpcException) as e:
            logger.error(f"Error get_signature_statuses {signature}: {_error_reason(e)}")
            raise TransientNetworkError(f"failed to get status for {signature}: {_error_reason(e)}") from e

        status = resp.value[0] if resp.value else None
        if status is None:
            return TransactionStatus(signature=signature, status=STATUS_UNKNOWN)
        if status.err is not None:
            return TransactionStatus(
                signature=signature,
                status=STATUS_FAILED,
                confirmations=status.confirmations or 0,
                error=str(status.err),
            )
        return TransactionStatus(
            signature=signature,
            status=_normalize_confirmation_status(status.confirmation_status),
            confirmations=status.confirmations or 0,
        )
