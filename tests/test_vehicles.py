from unittest.mock import MagicMock

import pytest
from sqlalchemy import func, select

from bimdb.config import Settings
from bimdb.exceptions import BadRequestError, EntityNotFoundError
from bimdb.models import CouplingVehicle, Vehicle, VehiclePowerSource
from bimdb.multiset import ValueMultiset
from bimdb.schemas import VehicleFields
from bimdb.services import couplings as couplings_service
from bimdb.services import vehicles as vehicles_service

from .conftest import vehicle_form


def _count(db_session, model) -> int:
    db_session.expire_all()
    return db_session.execute(select(func.count()).select_from(model)).scalar_one()


def test_create_and_get_with_power_sources(db_session):
    vehicle_id = vehicles_service.create_vehicle(
        db_session,
        VehicleFields(
            company="ACME",
            vehicle_number="101",
            type_code="T1",
            vehicle_class="Tram",
            depot="North",
            other_data={"seats": "40"},
            power_sources=["Overhead", "Battery"],
        ),
    )

    vehicle = vehicles_service.get_vehicle(db_session, vehicle_id)

    assert vehicle.id == vehicle_id
    assert vehicle.depot == "North"
    assert vehicle.other_data == {"seats": "40"}
    assert vehicle.power_sources == ["Battery", "Overhead"]


def test_get_missing_vehicle(db_session):
    with pytest.raises(EntityNotFoundError):
        vehicles_service.get_vehicle(db_session, 999)


def test_update_replaces_fields_and_power_sources(db_session, make_vehicle):
    vehicle_id = make_vehicle(power_sources=["Diesel", "Battery"])

    vehicles_service.update_vehicle(
        db_session,
        vehicle_id,
        VehicleFields(
            company="ACME",
            vehicle_number="101a",
            type_code="T2",
            vehicle_class="Bus",
            power_sources=["Electric"],
        ),
    )
    db_session.expire_all()
    vehicle = vehicles_service.get_vehicle(db_session, vehicle_id)

    assert vehicle.vehicle_number == "101a"
    assert vehicle.type_code == "T2"
    assert vehicle.manufacturer is None
    assert vehicle.power_sources == ["Electric"]


def test_update_missing_vehicle_writes_nothing(db_session):
    fields = VehicleFields(
        company="ACME",
        vehicle_number="1",
        type_code="T",
        vehicle_class="Tram",
        power_sources=["Electric"],
    )

    with pytest.raises(EntityNotFoundError):
        vehicles_service.update_vehicle(db_session, 42, fields)

    assert _count(db_session, VehiclePowerSource) == 0


def test_delete_removes_children_and_renumbers_couplings(db_session, make_vehicle):
    first = make_vehicle(vehicle_number="1", power_sources=["Electric"])
    make_vehicle(vehicle_number="2")
    make_vehicle(vehicle_number="3")
    coupling_id = couplings_service.replace_coupling(db_session, None, "ACME", "1\n2\n3")

    vehicles_service.delete_vehicle(db_session, first)

    assert _count(db_session, VehiclePowerSource) == 0
    coupling = couplings_service.get_coupling(db_session, coupling_id)
    assert coupling.vehicle_numbers == ["2", "3"]
    assert [member.position for member in coupling.members] == [1, 2]


def test_delete_middle_member_closes_gap(db_session, make_vehicle):
    make_vehicle(vehicle_number="1")
    middle = make_vehicle(vehicle_number="2")
    make_vehicle(vehicle_number="3")
    coupling_id = couplings_service.replace_coupling(db_session, None, "ACME", "1\n2\n3")

    vehicles_service.delete_vehicle(db_session, middle)

    db_session.expire_all()
    positions = db_session.execute(
        select(CouplingVehicle.position)
        .where(CouplingVehicle.coupling_id == coupling_id)
        .order_by(CouplingVehicle.position)
    ).scalars().all()
    assert positions == [1, 2]


def test_delete_missing_vehicle(db_session):
    with pytest.raises(EntityNotFoundError):
        vehicles_service.delete_vehicle(db_session, 12345)


def test_list_orders_and_paginates(db_session, make_vehicle):
    make_vehicle(company="B", vehicle_number="1")
    make_vehicle(company="A", vehicle_number="2")
    make_vehicle(company="A", vehicle_number="10")
    make_vehicle(company="A", vehicle_number="2")

    first_page = vehicles_service.list_vehicles(db_session, page=0, per_page=3)
    second_page = vehicles_service.list_vehicles(db_session, page=1, per_page=3)

    assert first_page.companies == ["A", "B"]
    assert [(v.company, v.vehicle_number) for v in first_page.vehicles] == [
        ("A", "10"),
        ("A", "2"),
        ("A", "2"),
    ]
    assert first_page.vehicles[1].id < first_page.vehicles[2].id
    assert first_page.has_next
    assert [(v.company, v.vehicle_number) for v in second_page.vehicles] == [("B", "1")]


def test_list_filters_by_company(db_session, make_vehicle):
    make_vehicle(company="A", vehicle_number="1")
    make_vehicle(company="B", vehicle_number="2")

    result = vehicles_service.list_vehicles(db_session, page=0, per_page=20, company="B")

    assert [v.vehicle_number for v in result.vehicles] == ["2"]
    assert result.companies == ["A", "B"]


def test_negative_page_rejected_without_query():
    db = MagicMock()

    with pytest.raises(BadRequestError):
        vehicles_service.list_vehicles(db, page=-1, per_page=20)

    db.execute.assert_not_called()


@pytest.mark.filterwarnings("error::sqlalchemy.exc.SAWarning")
def test_list_and_delete_issue_no_sqlalchemy_warnings(db_session, make_vehicle):
    vehicle_id = make_vehicle()
    couplings_service.replace_coupling(db_session, None, "ACME", "101")

    page = vehicles_service.list_vehicles(db_session, page=0, per_page=20)
    vehicles_service.delete_vehicle(db_session, vehicle_id)

    assert page.companies == ["ACME"]
    assert _count(db_session, Vehicle) == 0


def test_page_offset_beyond_int64_rejected_without_query():
    db = MagicMock()

    with pytest.raises(BadRequestError, match="invalid 'page'"):
        vehicles_service.list_vehicles(db, page=2**62, per_page=20)

    db.execute.assert_not_called()


class TestParseVehicleForm:
    def parse(self, settings=None, **overrides):
        form = ValueMultiset(vehicle_form(**overrides).items())
        return vehicles_service.parse_vehicle_form(form, settings or Settings())

    def test_valid_form(self):
        fields = self.parse(**{"manufacturer": "", "depot": "West"})

        assert fields.company == "ACME"
        assert fields.vehicle_number == "101"
        assert fields.manufacturer is None
        assert fields.depot == "West"
        assert fields.other_data == {}

    def test_last_occurrence_wins(self):
        form = ValueMultiset(
            list(vehicle_form().items()) + [("company", "Other")]
        )

        fields = vehicles_service.parse_vehicle_form(form, Settings())

        assert fields.company == "Other"

    @pytest.mark.parametrize("key", ["company", "veh-number", "type-code", "veh-class", "other-data"])
    def test_required_field_missing(self, key):
        form = ValueMultiset((k, v) for k, v in vehicle_form().items() if k != key)

        with pytest.raises(BadRequestError, match=f"field '{key}' is required"):
            vehicles_service.parse_vehicle_form(form, Settings())

    @pytest.mark.parametrize("key", ["company", "veh-number", "type-code", "veh-class"])
    def test_required_field_empty(self, key):
        with pytest.raises(BadRequestError, match=f"field '{key}' must not be empty"):
            self.parse(**{key: ""})

    def test_other_data_must_be_json(self):
        with pytest.raises(BadRequestError, match="not valid JSON"):
            self.parse(**{"other-data": "{nope"})

    @pytest.mark.parametrize("value", ["[]", "1", '"text"', "null"])
    def test_other_data_must_be_object(self, value):
        with pytest.raises(BadRequestError, match="does not contain a JSON object"):
            self.parse(**{"other-data": value})

    def test_power_sources_from_checkboxes_and_lines(self):
        form = ValueMultiset(
            list(vehicle_form().items())
            + [("power-source", "Electric"), ("power-source", " Diesel \nElectric\n\nBattery")]
        )

        fields = vehicles_service.parse_vehicle_form(form, Settings())

        assert fields.power_sources == ["Electric", "Diesel", "Battery"]

    def test_vehicle_class_allow_list(self):
        settings = Settings(vehicle_classes=frozenset({"Tram"}))

        assert self.parse(settings).vehicle_class == "Tram"
        with pytest.raises(BadRequestError, match="vehicle class 'Bus' is not allowed"):
            self.parse(settings, **{"veh-class": "Bus"})

    def test_empty_allow_list_accepts_any_class(self):
        assert self.parse(Settings(), **{"veh-class": "Hovercraft"}).vehicle_class == "Hovercraft"

    def test_power_source_allow_list(self):
        settings = Settings(power_sources=frozenset({"Electric"}))
        form = ValueMultiset(
            list(vehicle_form().items()) + [("power-source", "Electric\nSteam")]
        )

        with pytest.raises(BadRequestError, match="power source 'Steam' is not allowed"):
            vehicles_service.parse_vehicle_form(form, settings)


def test_add_form_renders(client):
    response = client.get("/add")

    assert response.status_code == 200
    assert 'name="veh-number"' in response.text


def test_add_creates_vehicle_and_redirects(client, db_session):
    response = client.post(
        "/add",
        data=vehicle_form(**{"power-source": "Electric", "other-data": '{"seats": "30"}'}),
        follow_redirects=False,
    )

    assert response.status_code == 302
    assert response.headers["location"] == "/"
    vehicle = db_session.execute(select(Vehicle)).scalar_one()
    assert vehicle.other_data == {"seats": "30"}
    assert [row.power_source for row in vehicle.power_sources] == ["Electric"]


def test_add_rejects_invalid_other_data(client, db_session):
    response = client.post("/add", data=vehicle_form(**{"other-data": "[1, 2]"}))

    assert response.status_code == 400
    assert response.text == "400 Bad Request: field 'other-data' does not contain a JSON object"
    assert _count(db_session, Vehicle) == 0


def test_edit_form_shows_existing_values(client, make_vehicle):
    vehicle_id = make_vehicle(manufacturer="Lohner", other_data={"note": "x"})

    response = client.get(f"/edit?id={vehicle_id}")

    assert response.status_code == 200
    assert 'value="Lohner"' in response.text


def test_edit_updates_vehicle(client, db_session, make_vehicle):
    vehicle_id = make_vehicle(power_sources=["Diesel"])

    response = client.post(
        f"/edit?id={vehicle_id}",
        data=vehicle_form(**{"veh-number": "102", "power-source": "Electric"}),
        follow_redirects=False,
    )

    assert response.status_code == 302
    db_session.expire_all()
    vehicle = vehicles_service.get_vehicle(db_session, vehicle_id)
    assert vehicle.vehicle_number == "102"
    assert vehicle.power_sources == ["Electric"]


@pytest.mark.parametrize(
    "url, message",
    [
        ("/edit", "missing parameter 'id'"),
        ("/edit?id=abc", "invalid parameter value for 'id'"),
        ("/edit?id=99999999999999999999", "invalid parameter value for 'id'"),
        ("/edit?id=77", "failed to find this vehicle"),
    ],
)
def test_edit_bad_ids(client, url, message):
    response = client.get(url)

    assert response.status_code == 400
    assert message in response.text


def test_delete_requires_post(client, make_vehicle):
    vehicle_id = make_vehicle()

    response = client.get(f"/delete?id={vehicle_id}")

    assert response.status_code == 405
    assert response.headers["allow"] == "POST"


def test_delete_missing_vehicle_is_bad_request(client):
    response = client.post("/delete?id=5", follow_redirects=False)

    assert response.status_code == 400
    assert "failed to find this vehicle" in response.text


@pytest.mark.parametrize(
    "page, status",
    [
        ("-1", 400),
        ("x", 400),
        ("", 400),
        ("99999999999999999999", 400),
        ("999999999999999999", 400),
        ("0", 200),
        ("3", 200),
    ],
)
def test_index_page_parameter(client, page, status):
    assert client.get(f"/?page={page}").status_code == status


class TestRestrictedClasses:
    @pytest.fixture()
    def settings(self, tmp_path):
        return Settings(static_path=str(tmp_path), vehicle_classes=frozenset({"Tram"}))

    def test_disallowed_class_is_not_written(self, client, db_session):
        response = client.post("/add", data=vehicle_form(**{"veh-class": "Bus"}))

        assert response.status_code == 400
        assert _count(db_session, Vehicle) == 0

    def test_allowed_class_is_written(self, client, db_session):
        response = client.post("/add", data=vehicle_form(), follow_redirects=False)

        assert response.status_code == 302
        assert _count(db_session, Vehicle) == 1
