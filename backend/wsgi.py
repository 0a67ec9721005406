# backend/wsgi.py
from dotenv import load_dotenv

load_dotenv()

from storefront import create_app  # noqa: E402

app = create_app()
