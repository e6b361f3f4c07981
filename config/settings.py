from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    # RPC endpoints (comma-separated, tried in order)
    gnosis_rpc_urls: str = (
        "https://rpc.gnosischain.com,"
        "https://gnosis.publicnode.com,"
        "https://rpc.ankr.com/gnosis"
    )
    base_rpc_urls: str = (
        "https://mainnet.base.org,"
        "https://base.publicnode.com,"
        "https://base.meowrpc.com"
    )
    gnosis_chain_id: int = 100
    base_chain_id: int = 8453

    # POAP contract (same address on both chains)
    poap_contract_address: str = "0x22C1f6050E56d2876009903609a2cC3fEf83B415"

    # Target events as comma-separated "id:name" pairs
    poap_events: str = (
        "210723:Intervention @ UNamur,"
        "214291:Stablecoins et Monnaie Programmable"
    )

    # Scoring
    points_per_poap: str = "0.33"  # parsed as Decimal
    special_poap_count: int = 3  # exactly this many POAPs...
    special_poap_points: str = "1"  # ...scores this instead of the linear rate

    # Endpoint failover
    rpc_attempt_timeout_sec: float = 20.0
    rpc_retry_rounds: int = 2
    rpc_retry_backoff_sec: float = 1.0
    rpc_http_timeout_sec: float = 15.0
    rpc_max_rps: float = 20.0  # per endpoint; public RPCs throttle hard

    # Token discovery
    enumeration_limit: int = 50  # tokens beyond this index are ignored
    lookup_concurrency: int = 8

    # POAP public API (event names only, cosmetic)
    poap_api_url: str = "https://api.poap.tech"
    poap_api_key: str = ""
    enable_name_lookup: bool = True


settings = Settings()
