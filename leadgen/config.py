"""
Centralized configuration — all env vars and pipeline constants.
"""
import os


def _int_env(name, default):
    try:
        return int(os.getenv(name, default))
    except (TypeError, ValueError):
        return default


# ── Logging ──────────────────────────────────────────────────────────────────
LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')
LOG_FORMAT = os.getenv('LOG_FORMAT', 'text')

# ── Flask ────────────────────────────────────────────────────────────────────
SECRET_KEY = os.getenv('SECRET_KEY', 'dev-secret-change-me')

# ── Database ─────────────────────────────────────────────────────────────────
DATABASE_URL = os.getenv('DATABASE_URL', 'sqlite:///local.db')

# ── Inference provider ───────────────────────────────────────────────────────
INFERENCE_PROVIDER = os.getenv('INFERENCE_PROVIDER', 'openai').lower()
INFERENCE_TIMEOUT = _int_env('INFERENCE_TIMEOUT', 60)

OPENAI_API_KEY = os.getenv('OPENAI_API_KEY')
OPENAI_MODEL = os.getenv('OPENAI_MODEL', 'gpt-4o-mini')

ANTHROPIC_API_KEY = os.getenv('ANTHROPIC_API_KEY')
ANTHROPIC_MODEL = os.getenv('ANTHROPIC_MODEL', 'claude-haiku-4-5-20251001')

OLLAMA_URL = os.getenv('OLLAMA_URL', 'http://localhost:11434')
OLLAMA_MODEL = os.getenv('OLLAMA_MODEL', 'gemma3:1b')

# ── Brave Search (discovery + research) ──────────────────────────────────────
BRAVE_API_KEY = os.getenv('BRAVE_API_KEY')
BRAVE_SEARCH_URL = os.getenv('BRAVE_SEARCH_URL', 'https://api.search.brave.com/res/v1/web/search')
SEARCH_TIMEOUT = _int_env('SEARCH_TIMEOUT', 10)
RESEARCH_MAX_RESULTS = _int_env('RESEARCH_MAX_RESULTS', 5)
RESEARCH_CONTEXT_LIMIT = _int_env('RESEARCH_CONTEXT_LIMIT', 1500)

# ── Website scraping ─────────────────────────────────────────────────────────
FETCH_TIMEOUT = _int_env('FETCH_TIMEOUT', 12)
BODY_TEXT_LIMIT = _int_env('BODY_TEXT_LIMIT', 5000)
BROWSER_USER_AGENT = os.getenv(
    'BROWSER_USER_AGENT',
    'Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 '
    '(KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36',
)

# ── Scheduled workflow ───────────────────────────────────────────────────────
CRON_SECRET = os.getenv('CRON_SECRET')
DAILY_CANDIDATES = _int_env('DAILY_CANDIDATES', 4)

_niches = os.getenv('DAILY_NICHES')
DAILY_NICHES = [n.strip() for n in _niches.split('|') if n.strip()] if _niches else [
    'empresas constructoras colombia proyectos nuevos',
    'empresas de logistica y transporte bogota',
    'exportadoras agricolas colombia',
    'agencias de marketing digital bogota',
    'software factories colombia',
]

DEFAULT_DISCOVERY_QUERY = os.getenv(
    'DEFAULT_DISCOVERY_QUERY', 'pymes en colombia que necesiten automatizacion',
)

# ── Local dev ────────────────────────────────────────────────────────────────
MOCK_PIPELINE = bool(os.getenv('MOCK_PIPELINE'))

# ── Outreach copy ────────────────────────────────────────────────────────────
OUTREACH_SENDER = os.getenv('OUTREACH_SENDER', 'AIProdig (aiprodig.com)')
OUTREACH_OFFERING = os.getenv(
    'OUTREACH_OFFERING',
    'Business Intelligence (Power BI), Enterprise Apps (Power Apps), '
    'Automation (n8n/Power Automate), and Local AI/Chatbots',
)

# ── Lead lifecycle ───────────────────────────────────────────────────────────
STATUS_NEW = 'new'
STATUS_ANALYZED = 'analyzed'
LEAD_STATUSES = [STATUS_NEW, STATUS_ANALYZED]
