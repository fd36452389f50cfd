from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    chain: str = "bsc"

    # BSC JSON-RPC (contract reads, bytecode)
    bsc_rpc_url: str = "https://bsc-dataseed1.binance.org/"
    rpc_max_rps: float = 10.0

    # Moralis (holders, transfers, verification, net worth, analytics)
    moralis_api_key: str = ""
    moralis_chain: str = "0x38"
    moralis_max_rps: float = 5.0
    moralis_max_pages: int = 10  # cursor pages per history request

    # Pyth Hermes price oracle
    pyth_hermes_url: str = "https://hermes.pyth.network"
    pyth_max_rps: float = 5.0

    # Report cache
    redis_url: str = "redis://localhost:6379/0"
    enable_report_cache: bool = False
    report_cache_ttl_sec: int = 300

    # Engine concurrency: one bound shared by sub-analyses and per-holder enrichment
    analysis_max_concurrency: int = 5
    analysis_timeout_sec: float = 60.0
    # per leaf call; a slow upstream degrades its own sub-analysis only
    subanalysis_timeout_sec: float = 20.0

    # Holder distribution
    top_holders_limit: int = 10
    pool_reconcile_holders: int = 20
    holder_enrich_min_pct: float = 0.5
    whale_portfolio_usd: float = 1_000_000.0
    whale_token_usd: float = 500_000.0
    huge_transfer_usd: float = 10_000.0
    diamond_hands_days: int = 7
    holder_lookback_days: int = 90
    creator_holding_warn_pct: float = 5.0
    single_holder_warn_pct: float = 30.0

    # Honeypot heuristics (uncalibrated, pending product review)
    honeypot_min_indicators: int = 2
    honeypot_owner_pct_with_indicator: float = 95.0
    honeypot_owner_pct_unverified: float = 99.0
    honeypot_shortcircuit_owner_pct: float = 99.0
    honeypot_shortcircuit_max_liquidity_usd: float = 1000.0
    honeypot_owner_indicator_pct: float = 90.0
    honeypot_low_liquidity_usd: float = 100.0

    # LP security
    lp_burned_threshold_pct: float = 95.0
    lp_locked_threshold_pct: float = 50.0

    # Position ledger
    pnl_lookback_days: int = 7

    # Chain constants (BSC mainnet)
    wrapped_native_address: str = "0xbb4cdb9cbd36b01bd1cbaebf2de08d9173bc095c"  # WBNB
    stablecoin_addresses: list[str] = [
        "0xe9e7cea3dedca5984780bafc599bd69add087d56",  # BUSD
        "0x55d398326f99059ff775485246999027b3197955",  # USDT
    ]
    v2_factory_address: str = "0xca143ce32fe78f1f7019d7d551a6402fc5350c73"
    v3_factory_address: str = "0x0bfbcf9fa4f9c56b0f40a671ad40e0805a091865"
    v3_fee_tiers: list[int] = [100, 500, 2500, 10000]
    dead_address: str = "0x000000000000000000000000000000000000dead"
    zero_address: str = "0x0000000000000000000000000000000000000000"
    known_lockers: dict[str, str] = {
        "0x7ee058420e5937496f5a2096f04caa7721cf70cc": "PinkLock",
        "0x71b5759d73262fbb223956913ecf4ecc51057641": "PinkLock",
        "0xc765bddb93b0d1c1a88282ba0fa6b2d00e3e0c83": "Team Finance",
        "0xe2fe530c047f2d85298b07d9333c05737f1435fb": "Team Finance",
        "0x407993575c91ce7643a4d4ccacc9a98c36ee1bbe": "PancakeSwap Locker",
        "0x2967e7bb9daa5711ac332caf874bd47ef99b3820": "Unicrypt",
    }
    # token address -> Pyth price feed id
    pyth_feed_ids: dict[str, str] = {
        "0xbb4cdb9cbd36b01bd1cbaebf2de08d9173bc095c": "0x2f95862b045670cd22bee3114c39763a4a08beeb663b145d283c31d7d1101c4f",  # BNB
        "0x55d398326f99059ff775485246999027b3197955": "0x2b89b9dc8fdf9f34709a5b106b472f0f39bb6ca9ce04b0fd7f2e971688e2e53b",  # USDT
        "0x8ac76a51cc950d9822d68b83fe1ad97b32cd580d": "0xeaa020c61cc479712813461ce153894a96a6c00b21ed0cfc2798d1f9a9e9c94a",  # USDC
        "0x2170ed0880ac9a755fd29b2688956bd959f933f8": "0xff61491a931112ddf1bd8147cd1b641375f79f5825126d665480874634fd0ace",  # ETH
        "0x7130d2a12b9bcbfae4f2634d864a1ee1ce3ead9c": "0xe62df6c8b4a85fe1a67db44dc12de5db330f7ac66b72dc658afedf0f4a415b43",  # BTCB
    }


settings = Settings()
