from mangum import Mangum
import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from habit_ledger.api import configure_logging, create_app
from habit_ledger.config import Settings

settings = Settings()
configure_logging(settings)

app = create_app(settings=settings, root_path="/api")

handler = Mangum(app)
