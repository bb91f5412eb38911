"""
Supported networks and the environment variables that configure them
"""
from dataclasses import dataclass
from enum import Enum
from typing import Dict


class ChainKey(str, Enum):
    """Networks the pipeline can submit to"""
    ETH = "eth"
    BNB = "bnb"


@dataclass(frozen=True)
class ChainInfo:
    key: ChainKey
    label: str
    chain_id: int
    rpc_env: str
    contract_env: str
    explorer_url: str

    def tx_url(self, transaction_hash: str) -> str:
        return f"{self.explorer_url}/tx/{transaction_hash}"


CHAINS: Dict[ChainKey, ChainInfo] = {
    ChainKey.ETH: ChainInfo(
        key=ChainKey.ETH,
        label="Ethereum Mainnet",
        chain_id=1,
        rpc_env="RPC_ETH",
        contract_env="QRYP_CONTRACT_ETH",
        explorer_url="https://etherscan.io",
    ),
    ChainKey.BNB: ChainInfo(
        key=ChainKey.BNB,
        label="BNB Chain (BSC) Mainnet",
        chain_id=56,
        rpc_env="RPC_BNB",
        contract_env="QRYP_CONTRACT_BNB",
        explorer_url="https://bscscan.com",
    ),
}

# Order offered when prompting
CHAIN_CHOICES = [ChainKey.BNB, ChainKey.ETH]
