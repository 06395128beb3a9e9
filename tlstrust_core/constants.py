# tlstrust_core/constants.py
from datetime import timedelta

TABLE_NAME = "certificate_validations"

DEFAULT_DB_PATH = "db/tlstrust.db"
DEFAULT_PROVIDER = "sqlite"

# "Proceed Once" grants are time-boxed rather than session-scoped
PROCEED_ONCE_TTL = timedelta(hours=24)
DEFAULT_SWEEP_INTERVAL_S = 3600.0

ENV_STORAGE_PROVIDER = "TLSTRUST_STORAGE_PROVIDER"
ENV_DB_PATH = "TLSTRUST_DB_PATH"
ENV_PROCEED_ONCE_TTL_HOURS = "TLSTRUST_PROCEED_ONCE_TTL_HOURS"
ENV_MATCH_FINGERPRINT = "TLSTRUST_MATCH_FINGERPRINT"
ENV_SWEEP_ON_START = "TLSTRUST_SWEEP_ON_START"

# Consent dialog
DIALOG_TITLE = "Certificate Error for {hostname}"
DIALOG_DETAIL = (
    "The site {hostname} has a certificate error:\n\n"
    "{errors}\n\n"
    "Proceeding is unsafe and may expose your data to attackers."
)
DIALOG_OPTIONS = ("Go Back", "Proceed Once (Unsafe)", "Always Accept This Site")
DIALOG_DEFAULT_OPTION = 0
DIALOG_CANCEL_OPTION = 0
