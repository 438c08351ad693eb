from __future__ import annotations

import logging
from functools import wraps

from flask import Flask, jsonify, request

from ..common.validators import parse_time_slot
from ..core.exceptions import NotFoundError, PreconditionFailedError, ValidationError
from ..container import Container

logger = logging.getLogger(__name__)


def json_errors(view):
    """Map domain exceptions to JSON error responses."""

    @wraps(view)
    def wrapper(*args, **kwargs):
        try:
            return view(*args, **kwargs)
        except ValidationError as e:
            return jsonify({"message": str(e)}), 400
        except NotFoundError as e:
            return jsonify({"message": str(e)}), 404
        except PreconditionFailedError as e:
            return jsonify({"message": str(e)}), 403
        except Exception:
            logger.exception("Unhandled error in %s", view.__name__)
            return jsonify({"message": "Internal server error"}), 500

    return wrapper


def register(app: Flask, container: Container) -> None:
    def _body() -> dict:
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            raise ValidationError("Invalid attendance data")
        return data

    def _times(data: dict, prefix: str = "") -> tuple:
        """Explicit start/end win; otherwise split a combined "HH:MM-HH:MM" slot."""

        start_key = f"{prefix}StartTime" if prefix else "startTime"
        end_key = f"{prefix}EndTime" if prefix else "endTime"
        start, end = data.get(start_key), data.get(end_key)
        if not start and not end:
            return parse_time_slot(data.get(f"{prefix}TimeSlot" if prefix else "timeSlot"))
        return start, end

    @app.route("/api/attendance/course/<course_id>", methods=["GET"], endpoint="attendance_by_course")
    @json_errors
    def attendance_by_course(course_id):
        reports = container.attendance_service.list_course_attendance(
            course_id,
            component=request.args.get("component"),
            start_date=request.args.get("startDate"),
            end_date=request.args.get("endDate"),
            academic_year=request.args.get("academicYear"),
        )
        return jsonify([r.to_dict() for r in reports])

    @app.route("/api/attendance/course/<course_id>/summary", methods=["GET"], endpoint="attendance_summary")
    @json_errors
    def attendance_summary(course_id):
        summary = container.attendance_service.get_summary(
            course_id,
            component=request.args.get("component"),
            academic_year=request.args.get("academicYear"),
        )
        return jsonify(summary.to_dict())

    @app.route(
        "/api/attendance/course/<course_id>/student/<student_id>",
        methods=["GET"],
        endpoint="student_attendance",
    )
    @json_errors
    def student_attendance(course_id, student_id):
        report = container.attendance_service.get_student_attendance(
            course_id,
            student_id,
            component=request.args.get("component"),
            academic_year=request.args.get("academicYear"),
        )
        return jsonify(report.to_dict())

    @app.route("/api/attendance/course/<course_id>", methods=["POST"], endpoint="take_attendance")
    @json_errors
    def take_attendance(course_id):
        data = _body()
        start_time, end_time = _times(data)
        result = container.session_service.take_attendance(
            course_id,
            date=data.get("date"),
            entries=data.get("attendanceData"),
            component=data.get("component"),
            academic_year=data.get("academicYear"),
            start_time=start_time,
            end_time=end_time,
            remarks=data.get("remarks"),
        )
        body = result.to_dict()
        body.update(
            message=f"Attendance recorded for {result.updated} students",
            date=data.get("date"),
            startTime=start_time,
            endTime=end_time,
            component=data.get("component"),
        )
        return jsonify(body)

    @app.route("/api/attendance/course/<course_id>", methods=["PUT"], endpoint="modify_attendance")
    @json_errors
    def modify_attendance(course_id):
        data = _body()
        original_start, original_end = _times(data, "original")
        start_time, end_time = _times(data)
        result = container.session_service.modify_attendance(
            course_id,
            original_date=data.get("originalDate"),
            date=data.get("date"),
            entries=data.get("attendanceData"),
            original_start_time=original_start,
            original_end_time=original_end,
            start_time=start_time,
            end_time=end_time,
            original_component=data.get("originalComponent"),
            component=data.get("component"),
            academic_year=data.get("academicYear"),
            remarks=data.get("remarks"),
        )
        body = result.to_dict()
        body["message"] = f"Attendance modified for {result.updated} students"
        return jsonify(body)

    @app.route("/api/attendance/course/<course_id>", methods=["DELETE"], endpoint="delete_attendance")
    @json_errors
    def delete_attendance(course_id):
        data = _body()
        start_time, end_time = _times(data)
        modified = container.session_service.delete_attendance(
            course_id,
            date=data.get("date"),
            start_time=start_time,
            end_time=end_time,
            component=data.get("component"),
        )
        return jsonify(
            {
                "message": f"Deleted attendance records for {modified} students",
                "date": data.get("date"),
                "startTime": start_time,
                "endTime": end_time,
                "component": data.get("component"),
                "modifiedCount": modified,
            }
        )
