"""
Documentation routes (registered only when DEBUG_ON is set).

- GET /             index page with a Swagger UI
- GET /swaggerJSON  Swagger 2.0 document as JSON
- GET /swaggerYAML  the same document as YAML
"""
from flask import Blueprint, Response, current_app, render_template

docs_bp = Blueprint('docs', __name__)


@docs_bp.route("/", methods=["GET"])
def index():
    conf = current_app.service_conf
    return render_template(
        "index.html",
        service_name=conf.service_name,
        version=conf.version,
        description=conf.description,
        build_time=conf.build_time,
        docs_url=conf.public_url("/swaggerJSON"),
        contracts=list(current_app.registry),
        base_path=conf.base_path,
    )


@docs_bp.route("/swaggerJSON", methods=["GET"])
def swagger_json():
    docs = current_app.swagger_docs
    return Response(docs.get_document_json(), mimetype="application/json")


@docs_bp.route("/swaggerYAML", methods=["GET"])
def swagger_yaml():
    docs = current_app.swagger_docs
    return Response(docs.get_document_yaml(), mimetype="application/x-yaml")
