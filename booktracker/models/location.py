from booktracker import db


class LocationLevel:
    """Levels of the location hierarchy, top down."""
    STATE = "State"
    DISTRICT = "District"
    TOWN = "Town"
    CENTER = "Center"

    ALL = [STATE, DISTRICT, TOWN, CENTER]


class State(db.Model):
    __tablename__ = "location_states"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False, unique=True)
    created_at = db.Column(db.DateTime, server_default=db.func.now())

    districts = db.relationship(
        "District", back_populates="state", cascade="all, delete-orphan", order_by="District.name"
    )

    def __repr__(self):
        return f"<State {self.name}>"


class District(db.Model):
    __tablename__ = "location_districts"
    __table_args__ = (db.UniqueConstraint("state_id", "name"),)

    id = db.Column(db.Integer, primary_key=True)
    state_id = db.Column(db.Integer, db.ForeignKey("location_states.id"), nullable=False)
    name = db.Column(db.String(100), nullable=False)
    created_at = db.Column(db.DateTime, server_default=db.func.now())

    state = db.relationship("State", back_populates="districts")
    towns = db.relationship(
        "Town", back_populates="district", cascade="all, delete-orphan", order_by="Town.name"
    )

    def __repr__(self):
        return f"<District {self.name}>"


class Town(db.Model):
    """Town or mandal."""

    __tablename__ = "location_towns"
    __table_args__ = (db.UniqueConstraint("district_id", "name"),)

    id = db.Column(db.Integer, primary_key=True)
    district_id = db.Column(db.Integer, db.ForeignKey("location_districts.id"), nullable=False)
    name = db.Column(db.String(100), nullable=False)
    created_at = db.Column(db.DateTime, server_default=db.func.now())

    district = db.relationship("District", back_populates="towns")
    centers = db.relationship(
        "Center", back_populates="town", cascade="all, delete-orphan", order_by="Center.name"
    )

    def __repr__(self):
        return f"<Town {self.name}>"


class Center(db.Model):
    __tablename__ = "location_centers"
    __table_args__ = (db.UniqueConstraint("town_id", "name"),)

    id = db.Column(db.Integer, primary_key=True)
    town_id = db.Column(db.Integer, db.ForeignKey("location_towns.id"), nullable=False)
    name = db.Column(db.String(100), nullable=False)
    created_at = db.Column(db.DateTime, server_default=db.func.now())

    town = db.relationship("Town", back_populates="centers")

    def __repr__(self):
        return f"<Center {self.name}>"
