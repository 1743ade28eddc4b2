# resources/rate_resource.py
from flask.views import MethodView
from flask_smorest import Blueprint

from ..constants.service_code import HTTP_STATUS_CODES
from ..schemas.rate_schemas import (
    CurrentRateSchema,
    RateHistoryEntrySchema,
    RateHistoryQuerySchema,
    SetRateSchema,
)
from ..security.auth import current_user_id, token_required
from ..services import rate_service
from ..services.stock.errors import StockError
from ..utils.helpers import make_log_tag
from ..utils.json_response import prepared_response, stock_error_response
from ..utils.logger import Log
from ..utils.rate_limits import crud_read_limiter, crud_write_limiter

blp_rate = Blueprint("rates", __name__, description="Daily per-kg gas rate")


@blp_rate.route("/rates")
class RateResource(MethodView):

    @token_required
    @crud_write_limiter("rate")
    @blp_rate.arguments(SetRateSchema, location="json")
    @blp_rate.response(HTTP_STATUS_CODES["OK"])
    @blp_rate.doc(
        summary="Set today's rate",
        description="Records the rate and pushes it to every active gas plant.",
        security=[{"Bearer": []}],
    )
    def post(self, body):
        log_tag = make_log_tag("rate_resource.py", "RateResource", "post", rate=body.get("rate"))
        try:
            result = rate_service.set_rate(body["rate"], set_by=current_user_id())
            return prepared_response(
                status=True,
                status_code="OK",
                message="Rate updated successfully",
                data=CurrentRateSchema().dump(result),
            )
        except StockError as e:
            Log.info(f"{log_tag} {e.code}: {e.message}")
            return stock_error_response(e)
        except Exception as e:
            Log.error(f"{log_tag} Error setting rate: {str(e)}")
            return prepared_response(
                status=False,
                status_code="INTERNAL_SERVER_ERROR",
                message="Error setting rate",
                errors=[str(e)],
            )


@blp_rate.route("/rates/current")
class CurrentRateResource(MethodView):

    @token_required
    @crud_read_limiter("rate")
    @blp_rate.response(HTTP_STATUS_CODES["OK"])
    @blp_rate.doc(summary="Current per-kg rate", security=[{"Bearer": []}])
    def get(self):
        log_tag = make_log_tag("rate_resource.py", "CurrentRateResource", "get")
        try:
            return prepared_response(
                status=True,
                status_code="OK",
                message="Current rate retrieved successfully",
                data=CurrentRateSchema().dump(rate_service.get_current_rate()),
            )
        except Exception as e:
            Log.error(f"{log_tag} Error retrieving rate: {str(e)}")
            return prepared_response(
                status=False,
                status_code="INTERNAL_SERVER_ERROR",
                message="Error retrieving current rate",
                errors=[str(e)],
            )


@blp_rate.route("/rates/history")
class RateHistoryResource(MethodView):

    @token_required
    @crud_read_limiter("rate")
    @blp_rate.arguments(RateHistoryQuerySchema, location="query")
    @blp_rate.response(HTTP_STATUS_CODES["OK"])
    @blp_rate.doc(summary="Rate history with daily kilograms sold", security=[{"Bearer": []}])
    def get(self, query_args):
        log_tag = make_log_tag("rate_resource.py", "RateHistoryResource", "get", **query_args)
        try:
            history = rate_service.get_rate_history(
                month=query_args.get("month"),
                year=query_args.get("year"),
                search=query_args.get("search"),
            )
            return prepared_response(
                status=True,
                status_code="OK",
                message="Rate history retrieved successfully",
                data=RateHistoryEntrySchema(many=True).dump(history),
            )
        except Exception as e:
            Log.error(f"{log_tag} Error retrieving rate history: {str(e)}")
            return prepared_response(
                status=False,
                status_code="INTERNAL_SERVER_ERROR",
                message="Error retrieving rate history",
                errors=[str(e)],
            )
