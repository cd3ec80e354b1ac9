from __future__ import annotations

from flask import Flask, jsonify

from ..common.http import current_capability, json_payload, serialize
from ..container import Container
from ..core.enums import Population, Section
from ..core.exceptions import NotFoundError
from .class_structure import CLASS_STRUCTURE


def register(app: Flask, container: Container) -> None:
    def _population(raw: str) -> Population:
        try:
            population = Population(raw)
        except ValueError:
            raise NotFoundError(f"Unknown roster: {raw}")
        section = Section.STUDENTS if population == Population.STUDENTS else Section.TEACHERS
        current_capability().require(section)
        return population

    @app.route("/api/classes", methods=["GET"], endpoint="classes_structure")
    def classes_structure():
        return jsonify({"success": True, "sections": serialize(CLASS_STRUCTURE)})

    @app.route("/api/roster/<population>", methods=["GET"], endpoint="people_list")
    def people_list(population: str):
        kind = _population(population)
        return jsonify({"success": True, "by_class": serialize(container.directory_service.list_by_class(kind))})

    @app.route("/api/roster/<population>", methods=["POST"], endpoint="people_add")
    def people_add(population: str):
        kind = _population(population)
        data = json_payload()
        person = container.directory_service.add_person(
            kind,
            name=data.get("name", ""),
            class_name=data.get("class_name", ""),
            parent_phone=data.get("parent_phone"),
        )
        return jsonify({"success": True, "person": serialize(person)}), 201

    @app.route("/api/roster/<population>/<int:person_id>", methods=["GET"], endpoint="people_get")
    def people_get(population: str, person_id: int):
        _population(population)
        return jsonify({"success": True, "person": serialize(container.directory_service.get(person_id))})

    @app.route("/api/roster/<population>/<int:person_id>", methods=["PUT"], endpoint="people_update")
    def people_update(population: str, person_id: int):
        _population(population)
        data = json_payload()
        person = container.directory_service.update_person(
            person_id,
            name=data.get("name", ""),
            class_name=data.get("class_name", ""),
            parent_phone=data.get("parent_phone"),
        )
        return jsonify({"success": True, "person": serialize(person)})

    @app.route("/api/roster/<population>/<int:person_id>", methods=["DELETE"], endpoint="people_remove")
    def people_remove(population: str, person_id: int):
        kind = _population(population)
        container.directory_service.remove_person(kind, person_id)
        return jsonify({"success": True, "message": "Deleted"})

    @app.route("/api/roster/<population>/<int:person_id>/stats", methods=["GET"], endpoint="people_stats")
    def people_stats(population: str, person_id: int):
        _population(population)
        term = container.term_service.active_context()
        return jsonify({"success": True, "stats": serialize(container.directory_service.term_stats(person_id, term))})
