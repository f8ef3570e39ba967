from fastapi import Response

from ..exceptions import BadRequestError
from ..services.export import ExportFormat, encode_records, export_records
from .common import RequestContext


def export_json(ctx: RequestContext) -> Response:
    return _export(ctx, ExportFormat.JSON)


def export_cbor(ctx: RequestContext) -> Response:
    return _export(ctx, ExportFormat.CBOR)


def _export(ctx: RequestContext, export_format: ExportFormat) -> Response:
    company = ctx.query.get_last("company")
    if company is None:
        raise BadRequestError("required parameter 'company' missing")
    records = export_records(ctx.db, company)
    return Response(
        content=encode_records(records, export_format),
        media_type=export_format.media_type,
    )
