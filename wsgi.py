# wsgi.py
from tracklet import create_app

application = create_app()
