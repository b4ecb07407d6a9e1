from datetime import datetime
from flask_login import UserMixin
from extensions import db

# Fixed vocabularies for categorical columns. Reports normalize anything
# outside these to "unknown".
USER_ROLES = ('admin', 'manager', 'service_advisor', 'technician', 'inspector', 'cashier', 'customer')
BOOKING_STATUSES = ('pending', 'confirmed', 'inspecting', 'working', 'in_progress', 'completed', 'cancelled')
SERVICE_TYPES = ('general_service', 'engine_repair', 'transmission', 'brake_service', 'oil_change', 'tire_service', 'inspection')
PRIORITIES = ('low', 'medium', 'high', 'urgent')
PAYMENT_STATUSES = ('paid', 'pending', 'partial', 'overdue', 'cancelled')
PAYMENT_METHODS = ('cash', 'card', 'bank_transfer', 'check', 'digital_wallet')
JOB_STATUSES = ('pending', 'assigned', 'working', 'in_progress', 'on_hold', 'completed', 'cancelled')
JOB_CATEGORIES = ('general_service', 'engine', 'transmission', 'brakes', 'electrical', 'suspension', 'bodywork', 'tires', 'diagnostics', 'other')
LEAVE_TYPES = ('sick', 'annual', 'personal', 'emergency', 'maternity', 'paternity', 'unpaid')
LEAVE_STATUSES = ('pending', 'approved', 'rejected', 'cancelled')
INVENTORY_CATEGORIES = ('parts', 'tools', 'fluids', 'filters', 'electrical', 'consumables', 'accessories')


class User(db.Model, UserMixin):
    __tablename__ = 'users'
    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(150), unique=True, nullable=False)
    email = db.Column(db.String(255), unique=True, nullable=True)
    password_hash = db.Column(db.String(255), nullable=False)
    role = db.Column(db.String(50), default='customer')
    first_name = db.Column(db.String(100), nullable=True)
    last_name = db.Column(db.String(100), nullable=True)
    phone = db.Column(db.String(30), nullable=True)
    specialization = db.Column(db.String(120), nullable=True)
    active = db.Column(db.Boolean, default=True)
    loyalty_points = db.Column(db.Integer, default=0)
    last_login_at = db.Column(db.DateTime, nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    def set_password(self, password, bcrypt):
        self.password_hash = bcrypt.generate_password_hash(password).decode('utf-8')

    def check_password(self, password, bcrypt):
        return bcrypt.check_password_hash(self.password_hash, password)

    def last_login(self):
        self.last_login_at = datetime.utcnow()

    @property
    def is_active(self):
        # Flask-Login refuses sessions for deactivated accounts
        return bool(self.active)

    @property
    def full_name(self):
        name = f"{self.first_name or ''} {self.last_name or ''}".strip()
        return name or self.username

    def __repr__(self):
        return f'<User {self.username}>'


class Vehicle(db.Model):
    __tablename__ = 'vehicles'
    id = db.Column(db.Integer, primary_key=True)
    owner_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=True)
    make = db.Column(db.String(80), nullable=True)
    model = db.Column(db.String(80), nullable=True)
    year = db.Column(db.Integer, nullable=True)
    license_plate = db.Column(db.String(20), nullable=True)

    owner = db.relationship('User', foreign_keys=[owner_id])

    def __repr__(self):
        return f'<Vehicle {self.license_plate}>'


class Booking(db.Model):
    __tablename__ = 'bookings'
    id = db.Column(db.Integer, primary_key=True)
    booking_code = db.Column(db.String(30), unique=True, nullable=True)
    customer_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=True)
    vehicle_id = db.Column(db.Integer, db.ForeignKey('vehicles.id'), nullable=True)
    assigned_inspector_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=True)
    service_type = db.Column(db.String(50), nullable=True)
    scheduled_date = db.Column(db.DateTime, nullable=True)
    status = db.Column(db.String(20), default='pending')
    priority = db.Column(db.String(20), default='medium')
    estimated_cost = db.Column(db.Float, nullable=True)
    actual_cost = db.Column(db.Float, nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    customer = db.relationship('User', foreign_keys=[customer_id])
    vehicle = db.relationship('Vehicle', foreign_keys=[vehicle_id])
    assigned_inspector = db.relationship('User', foreign_keys=[assigned_inspector_id])

    def __repr__(self):
        return f'<Booking {self.booking_code or self.id}>'


class Invoice(db.Model):
    __tablename__ = 'invoices'
    id = db.Column(db.Integer, primary_key=True)
    invoice_code = db.Column(db.String(30), unique=True, nullable=True)
    booking_id = db.Column(db.Integer, db.ForeignKey('bookings.id'), nullable=True)
    customer_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=True)
    issue_date = db.Column(db.DateTime, nullable=True)
    due_date = db.Column(db.DateTime, nullable=True)
    subtotal = db.Column(db.Float, nullable=True)
    tax = db.Column(db.Float, nullable=True)
    total_amount = db.Column(db.Float, nullable=True)
    payment_status = db.Column(db.String(20), default='pending')
    payment_method = db.Column(db.String(20), nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    booking = db.relationship('Booking', foreign_keys=[booking_id])
    customer = db.relationship('User', foreign_keys=[customer_id])

    def __repr__(self):
        return f'<Invoice {self.invoice_code or self.id}>'


class Job(db.Model):
    __tablename__ = 'jobs'
    id = db.Column(db.Integer, primary_key=True)
    job_code = db.Column(db.String(30), unique=True, nullable=True)
    booking_id = db.Column(db.Integer, db.ForeignKey('bookings.id'), nullable=True)
    title = db.Column(db.String(200), nullable=True)
    category = db.Column(db.String(50), nullable=True)
    status = db.Column(db.String(20), default='pending')
    priority = db.Column(db.String(20), default='medium')
    estimated_hours = db.Column(db.Float, nullable=True)
    actual_hours = db.Column(db.Float, nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    completed_at = db.Column(db.DateTime, nullable=True)

    booking = db.relationship('Booking', foreign_keys=[booking_id])
    assignments = db.relationship('JobAssignment', backref='job', lazy=True, cascade='all, delete-orphan')

    def __repr__(self):
        return f'<Job {self.job_code or self.id}>'


class JobAssignment(db.Model):
    __tablename__ = 'job_assignments'
    id = db.Column(db.Integer, primary_key=True)
    job_id = db.Column(db.Integer, db.ForeignKey('jobs.id'), nullable=False)
    labourer_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=True)
    assigned_at = db.Column(db.DateTime, default=datetime.utcnow)

    labourer = db.relationship('User', foreign_keys=[labourer_id])


class LeaveRequest(db.Model):
    __tablename__ = 'leave_requests'
    id = db.Column(db.Integer, primary_key=True)
    request_code = db.Column(db.String(30), unique=True, nullable=True)
    employee_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=True)
    leave_type = db.Column(db.String(20), nullable=True)
    start_date = db.Column(db.DateTime, nullable=True)
    end_date = db.Column(db.DateTime, nullable=True)
    total_days = db.Column(db.Float, nullable=True)
    status = db.Column(db.String(20), default='pending')
    approved_by_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    employee = db.relationship('User', foreign_keys=[employee_id])
    approved_by = db.relationship('User', foreign_keys=[approved_by_id])

    def __repr__(self):
        return f'<LeaveRequest {self.request_code or self.id}>'


class InventoryItem(db.Model):
    __tablename__ = 'inventory_items'
    id = db.Column(db.Integer, primary_key=True)
    item_code = db.Column(db.String(30), unique=True, nullable=True)
    name = db.Column(db.String(200), nullable=False)
    category = db.Column(db.String(50), nullable=True)
    brand = db.Column(db.String(100), nullable=True)
    current_stock = db.Column(db.Float, default=0)
    minimum_stock = db.Column(db.Float, default=0)
    unit = db.Column(db.String(20), default='piece')
    unit_price = db.Column(db.Float, default=0)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    def __repr__(self):
        return f'<InventoryItem {self.name}>'
