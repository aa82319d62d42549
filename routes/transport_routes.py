from datetime import datetime

from flask import Blueprint, request, jsonify, current_app
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from extensions import db
from models import Driver, SafetyRecord, Student, TransportRoute, Vehicle
from utils import admin_required
from utils.validators import clean_fields, missing_fields, parse_count, parse_date, parse_name_list

transport_bp = Blueprint('transport', __name__, url_prefix='/transport')


def _body() -> dict:
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def _required(data, fields, optional=()):
    cleaned, errors = clean_fields(data, tuple(fields) + tuple(optional))
    for field, message in missing_fields(cleaned, fields).items():
        errors.setdefault(field, message)
    return cleaned, errors


def _parse_time(value):
    if not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00")).replace(tzinfo=None)
    except ValueError:
        return None


def _save(record, failure: str, created: str, key: str):
    try:
        db.session.add(record)
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        current_app.logger.exception(failure)
        return jsonify({"ok": False, "error": failure}), 503
    return jsonify({"ok": True, "message": created, key: record.to_dict()}), 201


@transport_bp.route('/vehicles', methods=['POST'])
@admin_required
def add_vehicle():
    data = _body()
    cleaned, errors = _required(data, ("licensePlate", "type", "lastMaintenance"))
    if cleaned.get("lastMaintenance") and parse_date(cleaned["lastMaintenance"]) is None:
        errors["lastMaintenance"] = "Must be a valid date (YYYY-MM-DD)."
    gps = data.get("gpsInstalled", False)
    if not isinstance(gps, bool):
        errors["gpsInstalled"] = "Gps Installed must be true or false."
    if errors:
        return jsonify({"ok": False, "errors": errors}), 400

    plate = " ".join(cleaned["licensePlate"].upper().split())
    vehicle = Vehicle(
        license_plate=plate,
        type=cleaned["type"],
        last_maintenance=parse_date(cleaned["lastMaintenance"]),
        gps_installed=gps,
    )
    try:
        db.session.add(vehicle)
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        return jsonify({"ok": False, "errors": {"licensePlate": f"Vehicle {plate} is already registered."}}), 409
    except SQLAlchemyError:
        db.session.rollback()
        current_app.logger.exception("Failed to add vehicle")
        return jsonify({"ok": False, "error": "Failed to add vehicle"}), 503
    return jsonify({"ok": True, "message": "Vehicle added successfully", "vehicle": vehicle.to_dict()}), 201


@transport_bp.route('/vehicles', methods=['GET'])
@admin_required
def list_vehicles():
    vehicles = db.session.execute(db.select(Vehicle).order_by(Vehicle.license_plate)).scalars().all()
    return jsonify({"ok": True, "vehicles": [v.to_dict() for v in vehicles]})


@transport_bp.route('/routes', methods=['POST'])
@admin_required
def add_route():
    data = _body()
    cleaned, errors = _required(data, ("name", "zone", "schedule", "vehicleId", "capacity"))
    vehicle_id = parse_count(cleaned.get("vehicleId"))
    if "vehicleId" not in errors and vehicle_id is None:
        errors["vehicleId"] = "Vehicle ID must be a number."
    capacity = parse_count(cleaned.get("capacity"))
    if "capacity" not in errors and capacity is None:
        errors["capacity"] = "Capacity must be a positive whole number."
    if errors:
        return jsonify({"ok": False, "errors": errors}), 400
    if db.session.get(Vehicle, vehicle_id) is None:
        return jsonify({"ok": False, "error": "Vehicle not found"}), 404

    route = TransportRoute(
        name=cleaned["name"],
        zone=cleaned["zone"],
        schedule=cleaned["schedule"],
        vehicle_id=vehicle_id,
        capacity=capacity,
    )
    return _save(route, "Failed to add route", "Route added successfully", "route")


@transport_bp.route('/routes', methods=['GET'])
@admin_required
def list_routes():
    query = db.select(TransportRoute).order_by(TransportRoute.zone, TransportRoute.name)
    zone = request.args.get('zone')
    if zone:
        query = query.filter_by(zone=zone)
    routes = db.session.execute(query).scalars().all()
    return jsonify({"ok": True, "routes": [r.to_dict() for r in routes]})


@transport_bp.route('/drivers', methods=['POST'])
@admin_required
def add_driver():
    data = _body()
    cleaned, errors = _required(data, ("name", "backgroundCheckStatus"))
    training = parse_name_list(data.get("trainingCompleted"))
    if training is None:
        errors["trainingCompleted"] = "Training completed must be a list or comma separated text."
    if errors:
        return jsonify({"ok": False, "errors": errors}), 400

    driver = Driver(
        name=cleaned["name"],
        training_completed=training,
        background_check_status=cleaned["backgroundCheckStatus"],
    )
    return _save(driver, "Failed to add driver", "Driver added successfully", "driver")


@transport_bp.route('/drivers', methods=['GET'])
@admin_required
def list_drivers():
    drivers = db.session.execute(db.select(Driver).order_by(Driver.name)).scalars().all()
    return jsonify({"ok": True, "drivers": [d.to_dict() for d in drivers]})


@transport_bp.route('/safety-records', methods=['POST'])
@admin_required
def add_safety_record():
    data = _body()
    cleaned, errors = _required(data, ("stuId", "routeId", "boardingTime"), optional=("alightingTime",))
    route_id = parse_count(cleaned.get("routeId"))
    if "routeId" not in errors and route_id is None:
        errors["routeId"] = "Route ID must be a number."
    boarding = _parse_time(cleaned.get("boardingTime"))
    if "boardingTime" not in errors and boarding is None:
        errors["boardingTime"] = "Must be a valid date and time."
    alighting = _parse_time(cleaned.get("alightingTime"))
    if cleaned.get("alightingTime") and alighting is None:
        errors["alightingTime"] = "Must be a valid date and time."
    elif alighting and boarding and alighting < boarding:
        errors["alightingTime"] = "Alighting time cannot be before boarding time."
    if errors:
        return jsonify({"ok": False, "errors": errors}), 400

    if db.session.get(TransportRoute, route_id) is None:
        return jsonify({"ok": False, "error": "Route not found"}), 404
    if db.session.execute(db.select(Student.id).filter_by(stu_id=cleaned["stuId"])).first() is None:
        return jsonify({"ok": False, "error": "Student not found"}), 404

    record = SafetyRecord(
        stu_id=cleaned["stuId"],
        route_id=route_id,
        boarding_time=boarding,
        alighting_time=alighting,
    )
    return _save(record, "Failed to add safety record", "Safety record added successfully", "record")


@transport_bp.route('/safety-records', methods=['GET'])
@admin_required
def list_safety_records():
    query = db.select(SafetyRecord).order_by(SafetyRecord.boarding_time.desc(), SafetyRecord.id.desc())
    stu_id = request.args.get('stuId')
    if stu_id:
        query = query.filter_by(stu_id=stu_id)
    route_id = parse_count(request.args.get('routeId'))
    if route_id:
        query = query.filter_by(route_id=route_id)
    records = db.session.execute(query).scalars().all()
    return jsonify({"ok": True, "records": [r.to_dict() for r in records]})
