"""
EduBoost Gateway — Services Package
====================================

    - validation.py      require_text(): field checks for JSON bodies
    - session_store.py   SessionStore: bearer token → role + expiry
    - rate_limiter.py    RateLimiter: per-IP fixed window counter
    - sweeper.py         StoreSweeper: periodic eviction for both stores
    - llm_base.py        LLMService: abstract study-assistant contract
    - openai_service.py  OpenAIService: upstream HTTP implementation
"""
