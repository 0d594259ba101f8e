# backend/wsgi.py
from buffet_pos import create_app

app = create_app()
