import uuid
from order_service.extensions import db


class Address(db.Model):
    __tablename__ = "addresses"

    address_id = db.Column(db.UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = db.Column(db.UUID(as_uuid=True), nullable=False)
    first_name = db.Column(db.String(100), nullable=False)
    last_name = db.Column(db.String(100), nullable=False)
    email = db.Column(db.String(255))
    street = db.Column(db.String(255), nullable=False)
    city = db.Column(db.String(100), nullable=False)
    state = db.Column(db.String(100))
    zipcode = db.Column(db.String(20))
    country = db.Column(db.String(100), nullable=False)
    phone = db.Column(db.String(20))

    def to_dict(self):
        return {
            "_id": str(self.address_id),
            "userId": str(self.user_id),
            "firstName": self.first_name,
            "lastName": self.last_name,
            "email": self.email,
            "street": self.street,
            "city": self.city,
            "state": self.state,
            "zipcode": self.zipcode,
            "country": self.country,
            "phone": self.phone,
        }
