from ..resources import (
    blp_tank,
    blp_stock,
    blp_rate,
)


def register_routes(app, api):
    blueprints = [
        # deduction routes sit under /tanks as well; registered first so they
        # show up before the per-tank routes in the docs
        blp_stock,
        blp_tank,
        blp_rate,
    ]

    for blueprint in blueprints:
        api.register_blueprint(blueprint, url_prefix="/api")

    @app.route("/api/health")
    def health():
        return {"success": True, "status_code": 200, "message": "TrackLet stock service is healthy"}
