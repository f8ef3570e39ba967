import json

from fastapi.responses import HTMLResponse, RedirectResponse

from ..schemas import VehicleRead
from ..services import vehicles as vehicles_service
from .common import RequestContext, parse_int


def vehicles_list(ctx: RequestContext) -> HTMLResponse:
    raw_page = ctx.query.get_last("page")
    page = parse_int("0" if raw_page is None else raw_page, "invalid 'page'")
    company = ctx.query.get_last("company") or None
    vehicle_page = vehicles_service.list_vehicles(
        ctx.db, page, ctx.settings.vehicles_per_page, company
    )
    return ctx.render("index.html", {"vehicle_page": vehicle_page})


def vehicles_add(ctx: RequestContext) -> HTMLResponse | RedirectResponse:
    return _add_edit(ctx, None)


def vehicles_edit(ctx: RequestContext) -> HTMLResponse | RedirectResponse:
    return _add_edit(ctx, ctx.id_param())


def vehicles_delete(ctx: RequestContext) -> RedirectResponse:
    vehicles_service.delete_vehicle(ctx.db, ctx.id_param())
    return ctx.redirect()


def _add_edit(
    ctx: RequestContext, vehicle_id: int | None
) -> HTMLResponse | RedirectResponse:
    if ctx.request.method == "GET":
        vehicle = (
            vehicles_service.get_vehicle(ctx.db, vehicle_id)
            if vehicle_id is not None
            else None
        )
        return ctx.render(
            "add_edit.html",
            {
                "edit_id": vehicle_id,
                "form": _vehicle_to_form(vehicle),
                "vehicle_classes": sorted(ctx.settings.vehicle_classes),
                "power_source_options": sorted(ctx.settings.power_sources),
            },
        )

    form = ctx.form()
    fields = vehicles_service.parse_vehicle_form(form, ctx.settings)
    if vehicle_id is None:
        vehicles_service.create_vehicle(ctx.db, fields)
    else:
        vehicles_service.update_vehicle(ctx.db, vehicle_id, fields)
    return ctx.redirect()


def _vehicle_to_form(vehicle: VehicleRead | None) -> dict:
    if vehicle is None:
        return {
            "company": "",
            "veh_number": "",
            "type_code": "",
            "veh_class": "",
            "in_service_since": "",
            "out_of_service_since": "",
            "manufacturer": "",
            "depot": "",
            "other_data": "{}",
            "power_sources": [],
        }
    return {
        "company": vehicle.company,
        "veh_number": vehicle.vehicle_number,
        "type_code": vehicle.type_code,
        "veh_class": vehicle.vehicle_class,
        "in_service_since": vehicle.in_service_since or "",
        "out_of_service_since": vehicle.out_of_service_since or "",
        "manufacturer": vehicle.manufacturer or "",
        "depot": vehicle.depot or "",
        "other_data": json.dumps(vehicle.other_data, indent=2, ensure_ascii=False),
        "power_sources": vehicle.power_sources,
    }
