import logging

from booktracker import db
from booktracker.errors import FormatError, NotFoundError, ValidationError
from booktracker.models import Book, Center, Distribution, District, LocationLevel, State, Town
from booktracker.utils import clean

logger = logging.getLogger(__name__)


class LocationService:
    """State -> District -> Town -> Center hierarchy."""

    @staticmethod
    def tree() -> dict:
        """The whole hierarchy as ``{state: {district: {town: [centers]}}}``."""
        result = {}
        for state in State.query.order_by(State.name).all():
            result[state.name] = {
                district.name: {
                    town.name: [center.name for center in town.centers]
                    for town in district.towns
                }
                for district in state.districts
            }
        return result

    @staticmethod
    def _state(name) -> State:
        state = State.query.filter_by(name=clean(name)).first()
        if state is None:
            raise NotFoundError("State", name)
        return state

    @classmethod
    def _district(cls, state_name, name) -> District:
        state = cls._state(state_name)
        district = District.query.filter_by(state_id=state.id, name=clean(name)).first()
        if district is None:
            raise NotFoundError("District", name)
        return district

    @classmethod
    def _town(cls, state_name, district_name, name) -> Town:
        district = cls._district(state_name, district_name)
        town = Town.query.filter_by(district_id=district.id, name=clean(name)).first()
        if town is None:
            raise NotFoundError("Town", name)
        return town

    @classmethod
    def _center(cls, state_name, district_name, town_name, name) -> Center:
        town = cls._town(state_name, district_name, town_name)
        center = Center.query.filter_by(town_id=town.id, name=clean(name)).first()
        if center is None:
            raise NotFoundError("Center", name)
        return center

    @classmethod
    def find(cls, level, name, state=None, district=None, town=None):
        if level == LocationLevel.STATE:
            return cls._state(name)
        if level == LocationLevel.DISTRICT:
            return cls._district(state, name)
        if level == LocationLevel.TOWN:
            return cls._town(state, district, name)
        if level == LocationLevel.CENTER:
            return cls._center(state, district, town, name)
        raise ValidationError(f"Unknown location level: {level}", field="level")

    @classmethod
    def _parent_and_siblings(cls, level, state=None, district=None, town=None):
        """Return ``(parent, sibling model, parent fk column name)`` for *level*."""
        if level == LocationLevel.STATE:
            return None, State, None
        if level == LocationLevel.DISTRICT:
            return cls._state(state), District, "state_id"
        if level == LocationLevel.TOWN:
            return cls._district(state, district), Town, "district_id"
        if level == LocationLevel.CENTER:
            return cls._town(state, district, town), Center, "town_id"
        raise ValidationError(f"Unknown location level: {level}", field="level")

    @staticmethod
    def _name_taken(model, fk, parent, name) -> bool:
        query = model.query.filter_by(name=name)
        if fk:
            query = query.filter_by(**{fk: parent.id})
        return query.first() is not None

    @classmethod
    def add(cls, level, name, state=None, district=None, town=None):
        name = clean(name)
        if not name:
            raise ValidationError(f"{level} name is required", field="name")

        parent, model, fk = cls._parent_and_siblings(level, state, district, town)
        if cls._name_taken(model, fk, parent, name):
            raise ValidationError(f"{level} {name} already exists", field="name")

        node = model(name=name)
        if fk:
            setattr(node, fk, parent.id)
        db.session.add(node)
        db.session.commit()
        return node

    @classmethod
    def rename(cls, level, old_name, new_name, state=None, district=None, town=None):
        """Rename a node and carry the new name into stored addresses."""
        new_name = clean(new_name)
        if not new_name:
            raise ValidationError(f"{level} name is required", field="name")

        try:
            node = cls.find(level, old_name, state, district, town)
            if node.name == new_name:
                return node

            parent, model, fk = cls._parent_and_siblings(level, state, district, town)
            if cls._name_taken(model, fk, parent, new_name):
                raise ValidationError(f"{level} {new_name} already exists", field="name")

            old = node.name
            node.name = new_name
            updated = cls._cascade_rename(level, old, new_name, clean(state), clean(district))
            db.session.commit()
        except Exception:
            db.session.rollback()
            raise

        logger.info("Renamed %s %s to %s (%d address records updated)", level, old, new_name, updated)
        return node

    @staticmethod
    def _cascade_rename(level, old, new, state, district) -> int:
        """Rewrite address columns of distributions and books under the renamed node."""
        if level == LocationLevel.CENTER:
            return 0

        updated = 0
        for model in (Distribution, Book):
            query = model.query
            if level == LocationLevel.STATE:
                query = query.filter(model.state == old)
                values = {"state": new}
            elif level == LocationLevel.DISTRICT:
                query = query.filter(model.state == state, model.district == old)
                values = {"district": new}
            else:
                query = query.filter(model.state == state, model.district == district, model.town == old)
                values = {"town": new}
            updated += query.update(values, synchronize_session="fetch")
        return updated

    @classmethod
    def delete(cls, level, name, state=None, district=None, town=None) -> None:
        """Delete a node together with everything below it."""
        node = cls.find(level, name, state, district, town)
        deleted = node.name
        db.session.delete(node)
        db.session.commit()
        logger.info("Deleted %s %s", level, deleted)

    @classmethod
    def import_json(cls, document) -> dict:
        """Merge a ``{"States": {name: {"Districts": [...]}}}`` document.

        Each district entry carries ``District_Name`` and a ``Mandals`` list;
        mandals become towns. Existing nodes are reused, so importing the
        same file twice changes nothing.
        """
        if not isinstance(document, dict) or not isinstance(document.get("States"), dict):
            raise FormatError("Location file must contain a 'States' object")

        counts = {"states": 0, "districts": 0, "towns": 0}
        try:
            for raw_state, body in document["States"].items():
                state_name = clean(raw_state).replace("_", " ")
                if not state_name:
                    raise FormatError("State names cannot be blank")
                districts = body.get("Districts") if isinstance(body, dict) else None
                if not isinstance(districts, list):
                    raise FormatError(f"State {state_name} must contain a 'Districts' list")

                state = State.query.filter_by(name=state_name).first()
                if state is None:
                    state = State(name=state_name)
                    db.session.add(state)
                    counts["states"] += 1

                for entry in districts:
                    if not isinstance(entry, dict) or not clean(entry.get("District_Name")):
                        raise FormatError(f"Every district in {state_name} needs a District_Name")
                    mandals = entry.get("Mandals", [])
                    if not isinstance(mandals, list):
                        raise FormatError(f"Mandals of {entry['District_Name']} must be a list")

                    district_name = clean(entry["District_Name"])
                    district = next((d for d in state.districts if d.name == district_name), None)
                    if district is None:
                        district = District(name=district_name)
                        state.districts.append(district)
                        counts["districts"] += 1

                    for mandal in mandals:
                        town_name = clean(mandal)
                        if not town_name or any(t.name == town_name for t in district.towns):
                            continue
                        district.towns.append(Town(name=town_name))
                        counts["towns"] += 1

            db.session.commit()
        except Exception:
            db.session.rollback()
            raise

        logger.info("Imported locations: %s", counts)
        return counts
