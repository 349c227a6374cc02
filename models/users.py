from models import db, new_id

ADMIN_ROLES = ("super_admin", "system_admin", "organization_admin")
PLATFORM_ADMIN_ROLES = ("super_admin", "system_admin")


class User(db.Model):
    __tablename__ = 'users'

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    email = db.Column(db.String(255), nullable=False, unique=True)
    full_name = db.Column(db.String(255), nullable=True)
    role = db.Column(db.String(32), nullable=False, default="member")  # "member" or one of ADMIN_ROLES
    organization_id = db.Column(db.String(36), db.ForeignKey('organizations.id'), nullable=True)
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    date_created = db.Column(db.DateTime, default=db.func.now(), nullable=False)

    organization = db.relationship("Organization", back_populates="users")

    @property
    def display_name(self):
        """Name printed on certificates: full name, then email, then a generic label."""
        if self.full_name and self.full_name.strip():
            return self.full_name.strip()
        if self.email:
            return self.email
        return "Member"

    def __repr__(self):
        return f"<User {self.email} ({self.role})>"

    def to_dict(self):
        return {
            "id": self.id,
            "email": self.email,
            "full_name": self.full_name,
            "role": self.role,
            "organization_id": self.organization_id,
            "is_active": self.is_active,
            "date_created": self.date_created.isoformat() if self.date_created else None,
        }
