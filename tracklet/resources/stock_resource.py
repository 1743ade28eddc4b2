# resources/stock_resource.py
from flask.views import MethodView
from flask_smorest import Blueprint

from ..constants.service_code import ALLOCATION_POLICIES, HTTP_STATUS_CODES
from ..schemas.stock_schemas import (
    DeductedTankSchema,
    DeductStockSchema,
    StockStatsSchema,
    StockTransactionSchema,
    TransactionQuerySchema,
)
from ..security.auth import current_user_id, token_required
from ..services.stock import allocator, reports
from ..services.stock.errors import StockError
from ..utils.helpers import as_utc, make_log_tag, range_end, range_start
from ..utils.json_response import prepared_response, stock_error_response
from ..utils.logger import Log
from ..utils.rate_limits import crud_read_limiter, stock_deduct_limiter

blp_stock = Blueprint("stock", __name__, description="Stock deduction, ledger and statistics")


def _deduct(body, policy, log_tag):
    owner_id = body.get("owner_id") or current_user_id()
    if not owner_id:
        Log.error(f"{log_tag} No owner for the deduction")
        return prepared_response(
            status=False,
            status_code="BAD_REQUEST",
            message="ownerId is required",
            required_fields=["ownerId"],
        )

    try:
        deducted = allocator.deduct_stock(
            owner_id,
            body["amount"],
            rate=body.get("rate"),
            order_id=body.get("order_id"),
            policy=policy,
        )
        return prepared_response(
            status=True,
            status_code="OK",
            message="Stock deducted successfully",
            data={
                "ownerId": str(owner_id),
                "amount": str(sum((d["amount"] for d in deducted), 0)),
                "policy": policy,
                "deductedFrom": DeductedTankSchema(many=True).dump(deducted),
            },
        )
    except StockError as e:
        Log.info(f"{log_tag} {e.code}: {e.message}")
        return stock_error_response(e)
    except Exception as e:
        Log.error(f"{log_tag} Error deducting stock: {str(e)}")
        return prepared_response(
            status=False,
            status_code="INTERNAL_SERVER_ERROR",
            message="Error deducting stock",
            errors=[str(e)],
        )


@blp_stock.route("/tanks/deduct-stock")
class DeductStockResource(MethodView):

    @token_required
    @stock_deduct_limiter()
    @blp_stock.arguments(DeductStockSchema, location="json")
    @blp_stock.response(HTTP_STATUS_CODES["OK"])
    @blp_stock.doc(
        summary="Deduct stock across a gas plant's tanks",
        description="""
            Draws the requested tons from the owner's active tanks.
            greedy takes from the fullest tank first; sequential walks
            tanks by name. Nothing is written when the tanks cannot cover
            the full amount; the response carries the shortfall.
        """,
        security=[{"Bearer": []}],
    )
    def post(self, body):
        log_tag = make_log_tag(
            "stock_resource.py", "DeductStockResource", "post",
            owner=body.get("owner_id"), order=body.get("order_id"), policy=body.get("policy"),
        )
        return _deduct(body, body.get("policy") or ALLOCATION_POLICIES["GREEDY"], log_tag)


@blp_stock.route("/tanks/deduct-stock-sequential")
class DeductStockSequentialResource(MethodView):

    @token_required
    @stock_deduct_limiter()
    @blp_stock.arguments(DeductStockSchema, location="json")
    @blp_stock.response(HTTP_STATUS_CODES["OK"])
    @blp_stock.doc(summary="Deduct stock tank by tank in name order", security=[{"Bearer": []}])
    def post(self, body):
        log_tag = make_log_tag(
            "stock_resource.py", "DeductStockSequentialResource", "post",
            owner=body.get("owner_id"), order=body.get("order_id"),
        )
        return _deduct(body, ALLOCATION_POLICIES["SEQUENTIAL"], log_tag)


@blp_stock.route("/tanks/owner/<string:owner_id>/transactions")
class StockTransactionsResource(MethodView):

    @token_required
    @crud_read_limiter("stock_transactions")
    @blp_stock.arguments(TransactionQuerySchema, location="query")
    @blp_stock.response(HTTP_STATUS_CODES["OK"])
    @blp_stock.doc(summary="Stock ledger for a gas plant", security=[{"Bearer": []}])
    def get(self, query_args, owner_id):
        log_tag = make_log_tag(
            "stock_resource.py", "StockTransactionsResource", "get",
            owner=owner_id, type=query_args.get("type"),
        )
        try:
            rows = reports.list_transactions(
                owner_id,
                type_=query_args.get("type"),
                date_from=as_utc(range_start(query_args.get("start_date"))),
                date_to=as_utc(range_end(query_args.get("end_date"))),
            )
            return prepared_response(
                status=True,
                status_code="OK",
                message="Transactions retrieved successfully",
                data=StockTransactionSchema(many=True).dump(rows),
            )
        except ValueError as e:
            Log.info(f"{log_tag} {str(e)}")
            return prepared_response(status=False, status_code="BAD_REQUEST", message=str(e))
        except Exception as e:
            Log.error(f"{log_tag} Error retrieving transactions: {str(e)}")
            return prepared_response(
                status=False,
                status_code="INTERNAL_SERVER_ERROR",
                message="Error retrieving transactions",
                errors=[str(e)],
            )


@blp_stock.route("/tanks/owner/<string:owner_id>/stats")
class StockStatsResource(MethodView):

    @token_required
    @crud_read_limiter("stock_stats")
    @blp_stock.response(HTTP_STATUS_CODES["OK"])
    @blp_stock.doc(summary="Stock totals and today's movements", security=[{"Bearer": []}])
    def get(self, owner_id):
        log_tag = make_log_tag("stock_resource.py", "StockStatsResource", "get", owner=owner_id)
        try:
            stats = reports.get_stock_stats(owner_id)
            return prepared_response(
                status=True,
                status_code="OK",
                message="Stock stats retrieved successfully",
                data=StockStatsSchema().dump(stats),
            )
        except Exception as e:
            Log.error(f"{log_tag} Error computing stats: {str(e)}")
            return prepared_response(
                status=False,
                status_code="INTERNAL_SERVER_ERROR",
                message="Error computing stock stats",
                errors=[str(e)],
            )
