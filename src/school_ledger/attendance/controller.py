from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.datetime_utils import now_local
from ..common.http import csv_response, current_capability, date_arg, int_arg, json_payload, serialize
from ..container import Container
from ..core.enums import AttendanceStatus, Population, Section
from ..core.exceptions import NotFoundError, ValidationError


def register(app: Flask, container: Container) -> None:
    def _population(raw: str) -> Population:
        try:
            population = Population(raw)
        except ValueError:
            raise NotFoundError(f"Unknown roster: {raw}")
        # teacher attendance lives on the teachers page
        section = Section.ATTENDANCE if population == Population.STUDENTS else Section.TEACHERS
        current_capability().require(section)
        return population

    def _status(raw) -> AttendanceStatus:
        try:
            return AttendanceStatus(str(raw or "").lower())
        except ValueError:
            raise ValidationError("Status must be 'present' or 'absent'")

    @app.route("/api/attendance/<population>/mark", methods=["POST"], endpoint="attendance_mark")
    def attendance_mark(population: str):
        kind = _population(population)
        data = json_payload()
        result = container.attendance_service.mark_status(
            kind,
            int_arg(data.get("person_id"), "person_id"),
            _status(data.get("status")),
            target_date=date_arg(data.get("date"), "date", default=now_local().date()),
            term=container.term_service.active_context(),
            class_name=data.get("class_name"),
        )
        return jsonify({"success": True, "result": serialize(result)})

    @app.route("/api/attendance/<population>/mark-all", methods=["POST"], endpoint="attendance_mark_all")
    def attendance_mark_all(population: str):
        kind = _population(population)
        data = json_payload()
        status = _status(data.get("status"))
        result = container.attendance_service.mark_all_in_population(
            kind,
            status,
            target_date=date_arg(data.get("date"), "date", default=now_local().date()),
            term=container.term_service.active_context(),
            section=data.get("section"),
        )
        label = data.get("section") or kind.value
        return jsonify(
            {
                "success": True,
                "message": f"All in {label} marked {status.value}",
                "result": serialize(result),
            }
        )

    @app.route("/api/attendance/<population>/day", methods=["GET"], endpoint="attendance_day")
    def attendance_day(population: str):
        kind = _population(population)
        target = date_arg(request.args.get("date"), "date", default=now_local().date())
        day = container.attendance_service.get_day(kind, target)
        return jsonify({"success": True, "day": serialize(day)})

    @app.route("/api/attendance/<population>/summary", methods=["GET"], endpoint="attendance_summary")
    def attendance_summary(population: str):
        kind = _population(population)
        target = date_arg(request.args.get("date"), "date", default=now_local().date())
        sections = container.attendance_service.section_summary(kind, target)
        return jsonify({"success": True, "sections": serialize(sections)})

    @app.route(
        "/api/attendance/<population>/<int:person_id>/present-days",
        methods=["GET"],
        endpoint="attendance_present_days",
    )
    def attendance_present_days(population: str, person_id: int):
        kind = _population(population)
        count = container.attendance_service.query_present_days(
            kind,
            person_id,
            start=date_arg(request.args.get("start"), "start"),
            end=date_arg(request.args.get("end"), "end"),
        )
        return jsonify({"success": True, "present_days": count})

    @app.route("/api/attendance/<population>/range-report", methods=["GET"], endpoint="attendance_range_report")
    def attendance_range_report(population: str):
        kind = _population(population)
        start = date_arg(request.args.get("start"), "start")
        if start is None:
            raise ValidationError("start is required")
        end = date_arg(request.args.get("end"), "end")
        report = container.attendance_service.range_report(
            kind,
            start,
            end,
            holidays=int_arg(request.args.get("holidays", 0), "holidays"),
        )

        if request.args.get("format") == "csv":
            rows = [
                {
                    "name": r.name,
                    "class_name": r.class_name,
                    "student_number": r.student_number,
                    "present": r.present,
                    "total_school_days": report.total_school_days,
                }
                for r in report.rows
            ]
            filename = f"attendance_{kind.value}_{report.start:%Y%m%d}_{report.end:%Y%m%d}.csv"
            return csv_response(
                app,
                rows=rows,
                fieldnames=["name", "class_name", "student_number", "present", "total_school_days"],
                filename=filename,
            )

        return jsonify({"success": True, "report": serialize(report)})
