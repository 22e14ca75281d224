import os
from dotenv import load_dotenv

load_dotenv()

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///data/pedidos.db")

# snapshot local del ultimo listado bueno (fallback sin conexion)
CACHE_PATH = os.getenv("CACHE_PATH", "data/pedidos-cache.json")

# tabla de precios opcional; si no existe se usa el catalogo por defecto
CATALOG_PATH = os.getenv("CATALOG_PATH", "")

REFRESH_INTERVAL = float(os.getenv("REFRESH_INTERVAL", "10"))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]
