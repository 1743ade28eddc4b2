from .tank_resource import blp_tank
from .stock_resource import blp_stock
from .rate_resource import blp_rate
