from pymongo import MongoClient
from redis import Redis

from ..utils.logger import Log


class MongoDB:
    def __init__(self):
        self.client = None
        self.db = None
        self.use_transactions = False

    def init_app(self, app, client=None):
        db_name = app.config.get("MONGO_DB_NAME", "tracklet")

        if client is None:
            client = MongoClient(app.config["MONGO_URI"])

        self.client = client
        self.db = self.client[db_name]
        self.use_transactions = bool(app.config.get("MONGO_TRANSACTIONS", False))
        app.mongo = self.db

        Log.info(
            f"[db.py][MongoDB][init_app] Connected to database '{db_name}' "
            f"(transactions={'on' if self.use_transactions else 'off'})"
        )

    def get_collection(self, name):
        if self.db is None:
            raise RuntimeError("MongoDB not initialized")
        return self.db[name]


class RedisConnection:
    def __init__(self):
        self.connection = None

    def init_app(self, app):
        url = app.config.get("REDIS_URL")
        if not url:
            self.connection = None
            app.redis = None
            return
        self.connection = Redis.from_url(url)
        app.redis = self.connection
        Log.info("[db.py][RedisConnection][init_app] Redis connection configured")


# Export the instances
db = MongoDB()
redis_connection = RedisConnection()
