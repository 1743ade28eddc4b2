# resources/tank_resource.py
from flask.views import MethodView
from flask_smorest import Blueprint

from ..constants.service_code import HTTP_STATUS_CODES
from ..schemas.tank_schemas import (
    GasAmountSchema,
    TankCreateSchema,
    TankListQuerySchema,
    TankSchema,
    TankUpdateSchema,
)
from ..security.auth import current_user_id, token_required
from ..services.stock import operations
from ..services.stock.errors import StockError
from ..utils.helpers import make_log_tag
from ..utils.json_response import prepared_response, stock_error_response
from ..utils.logger import Log
from ..utils.rate_limits import crud_delete_limiter, crud_read_limiter, crud_write_limiter

blp_tank = Blueprint("tanks", __name__, description="Gas tank management and stock movements")

tank_schema = TankSchema()


def _server_error(log_tag, message, e):
    Log.error(f"{log_tag} {message}: {str(e)}")
    return prepared_response(
        status=False,
        status_code="INTERNAL_SERVER_ERROR",
        message=message,
        errors=[str(e)],
    )


@blp_tank.route("/tanks")
class TankCreateResource(MethodView):

    @token_required
    @crud_write_limiter("tank")
    @blp_tank.arguments(TankCreateSchema, location="json")
    @blp_tank.response(HTTP_STATUS_CODES["CREATED"])
    @blp_tank.doc(summary="Register a tank", security=[{"Bearer": []}])
    def post(self, body):
        owner_id = body.get("owner_id") or current_user_id()
        log_tag = make_log_tag("tank_resource.py", "TankCreateResource", "post", owner=owner_id)

        if not owner_id:
            Log.error(f"{log_tag} No owner for the new tank")
            return prepared_response(
                status=False,
                status_code="BAD_REQUEST",
                message="ownerId is required",
                required_fields=["ownerId"],
            )

        try:
            tank = operations.create_tank(
                owner_id=owner_id,
                name=body["name"],
                total_capacity=body["total_capacity"],
                location=body.get("location") or "",
                available=body.get("available") or 0,
                status=body.get("status"),
            )
            return prepared_response(
                status=True,
                status_code="CREATED",
                message="Tank created successfully",
                data=tank_schema.dump(tank),
            )
        except StockError as e:
            Log.info(f"{log_tag} {e.code}: {e.message}")
            return stock_error_response(e)
        except Exception as e:
            return _server_error(log_tag, "Error creating tank", e)


@blp_tank.route("/tanks/owner/<string:owner_id>")
class TankListResource(MethodView):

    @token_required
    @crud_read_limiter("tank")
    @blp_tank.arguments(TankListQuerySchema, location="query")
    @blp_tank.response(HTTP_STATUS_CODES["OK"])
    @blp_tank.doc(summary="List a gas plant's tanks", security=[{"Bearer": []}])
    def get(self, query_args, owner_id):
        log_tag = make_log_tag("tank_resource.py", "TankListResource", "get", owner=owner_id)
        try:
            tanks = operations.list_tanks(owner_id, status=query_args.get("status"))
            Log.info(f"{log_tag} {len(tanks)} tanks")
            return prepared_response(
                status=True,
                status_code="OK",
                message="Tanks retrieved successfully",
                data=tank_schema.dump(tanks, many=True),
            )
        except Exception as e:
            return _server_error(log_tag, "Error retrieving tanks", e)


@blp_tank.route("/tanks/<string:tank_id>")
class TankResource(MethodView):

    @token_required
    @crud_read_limiter("tank")
    @blp_tank.response(HTTP_STATUS_CODES["OK"])
    @blp_tank.doc(summary="Get a tank", security=[{"Bearer": []}])
    def get(self, tank_id):
        log_tag = make_log_tag("tank_resource.py", "TankResource", "get", tank=tank_id)
        try:
            tank = operations.get_tank(tank_id)
            return prepared_response(
                status=True,
                status_code="OK",
                message="Tank retrieved successfully",
                data=tank_schema.dump(tank),
            )
        except StockError as e:
            return stock_error_response(e)
        except Exception as e:
            return _server_error(log_tag, "Error retrieving tank", e)

    @token_required
    @crud_write_limiter("tank")
    @blp_tank.arguments(TankUpdateSchema, location="json")
    @blp_tank.response(HTTP_STATUS_CODES["OK"])
    @blp_tank.doc(summary="Update a tank", security=[{"Bearer": []}])
    def put(self, body, tank_id):
        log_tag = make_log_tag("tank_resource.py", "TankResource", "put", tank=tank_id)
        try:
            tank = operations.update_tank(
                tank_id,
                name=body.get("name"),
                location=body.get("location"),
                total_capacity=body.get("total_capacity"),
                status=body.get("status"),
            )
            return prepared_response(
                status=True,
                status_code="OK",
                message="Tank updated successfully",
                data=tank_schema.dump(tank),
            )
        except StockError as e:
            Log.info(f"{log_tag} {e.code}: {e.message}")
            return stock_error_response(e)
        except Exception as e:
            return _server_error(log_tag, "Error updating tank", e)

    @token_required
    @crud_delete_limiter("tank")
    @blp_tank.response(HTTP_STATUS_CODES["OK"])
    @blp_tank.doc(summary="Delete a tank", security=[{"Bearer": []}])
    def delete(self, tank_id):
        log_tag = make_log_tag("tank_resource.py", "TankResource", "delete", tank=tank_id)
        try:
            operations.delete_tank(tank_id)
            return prepared_response(
                status=True,
                status_code="OK",
                message="Tank deleted successfully",
            )
        except StockError as e:
            return stock_error_response(e)
        except Exception as e:
            return _server_error(log_tag, "Error deleting tank", e)


def _movement(log_tag, action, success_message, *args):
    try:
        tank = action(*args)
        return prepared_response(
            status=True,
            status_code="OK",
            message=success_message,
            data=tank_schema.dump(tank),
        )
    except StockError as e:
        Log.info(f"{log_tag} {e.code}: {e.message}")
        return stock_error_response(e)
    except Exception as e:
        return _server_error(log_tag, "Error updating tank stock", e)


@blp_tank.route("/tanks/<string:tank_id>/add-gas")
class AddGasResource(MethodView):

    @token_required
    @crud_write_limiter("stock")
    @blp_tank.arguments(GasAmountSchema, location="json")
    @blp_tank.response(HTTP_STATUS_CODES["OK"])
    @blp_tank.doc(summary="Add gas to a tank", security=[{"Bearer": []}])
    def post(self, body, tank_id):
        log_tag = make_log_tag("tank_resource.py", "AddGasResource", "post", tank=tank_id, amount=body["amount"])
        return _movement(
            log_tag, operations.add_stock, "Gas added successfully",
            tank_id, body["amount"], body.get("rate"),
        )


@blp_tank.route("/tanks/<string:tank_id>/freeze-gas")
class FreezeGasResource(MethodView):

    @token_required
    @crud_write_limiter("stock")
    @blp_tank.arguments(GasAmountSchema, location="json")
    @blp_tank.response(HTTP_STATUS_CODES["OK"])
    @blp_tank.doc(summary="Freeze gas in a tank", security=[{"Bearer": []}])
    def post(self, body, tank_id):
        log_tag = make_log_tag("tank_resource.py", "FreezeGasResource", "post", tank=tank_id, amount=body["amount"])
        return _movement(
            log_tag, operations.freeze_stock, "Gas frozen successfully",
            tank_id, body["amount"],
        )


@blp_tank.route("/tanks/<string:tank_id>/unfreeze-gas")
class UnfreezeGasResource(MethodView):

    @token_required
    @crud_write_limiter("stock")
    @blp_tank.arguments(GasAmountSchema, location="json")
    @blp_tank.response(HTTP_STATUS_CODES["OK"])
    @blp_tank.doc(summary="Unfreeze gas in a tank", security=[{"Bearer": []}])
    def post(self, body, tank_id):
        log_tag = make_log_tag("tank_resource.py", "UnfreezeGasResource", "post", tank=tank_id, amount=body["amount"])
        return _movement(
            log_tag, operations.unfreeze_stock, "Gas unfrozen successfully",
            tank_id, body["amount"],
        )
