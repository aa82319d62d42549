from datetime import datetime
from decimal import Decimal

from extensions import db


class Student(db.Model):
    __tablename__ = 'students'

    id = db.Column(db.Integer, primary_key=True)
    # Human-readable, year-scoped id (ST250001); unique so racing issuers collide loudly
    stu_id = db.Column(db.String(20), unique=True, nullable=False, index=True)
    full_name = db.Column(db.String(150), nullable=False)
    dob = db.Column(db.Date, nullable=False)
    gender = db.Column(db.String(20), nullable=False)
    grade = db.Column(db.String(50), nullable=False, index=True)
    section = db.Column(db.String(50), nullable=False, default='section1')
    parent_name = db.Column(db.String(150), nullable=False)
    parent_contact = db.Column(db.String(20), nullable=False)
    address = db.Column(db.String(255), nullable=False)
    previous_school = db.Column(db.String(150))
    documents = db.Column(db.JSON, default=list)
    subjects = db.Column(db.JSON, default=list)
    status = db.Column(db.String(20), nullable=False, default='pending')
    admission_date = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime)

    def to_dict(self):
        return {
            'stuId': self.stu_id,
            'fullName': self.full_name,
            'dob': self.dob.isoformat() if self.dob else None,
            'gender': self.gender,
            'grade': self.grade,
            'section': self.section,
            'parentName': self.parent_name,
            'parentContact': self.parent_contact,
            'address': self.address,
            'previousSchool': self.previous_school or '',
            'documents': list(self.documents or []),
            'subjects': list(self.subjects or []),
            'status': self.status,
            'admissionDate': self.admission_date.isoformat() if self.admission_date else None,
        }

    def __repr__(self):
        return f'<Student {self.full_name} ({self.stu_id})>'


class GradeRoster(db.Model):
    __tablename__ = 'grades'

    grade = db.Column(db.String(50), primary_key=True)
    students = db.Column(db.JSON, default=list)

    def __repr__(self):
        return f'<GradeRoster {self.grade} ({len(self.students or [])})>'


class Teacher(db.Model):
    __tablename__ = 'teachers'

    id = db.Column(db.Integer, primary_key=True)
    teacher_id = db.Column(db.String(20), unique=True, nullable=False, index=True)
    email = db.Column(db.String(255), unique=True, nullable=False)
    first_name = db.Column(db.String(100), nullable=False)
    contact = db.Column(db.String(20), nullable=False)
    address = db.Column(db.String(255), nullable=False)
    dob = db.Column(db.Date, nullable=False)
    gender = db.Column(db.String(20), nullable=False)
    qualifications = db.Column(db.String(255), nullable=False)
    joining_date = db.Column(db.Date, nullable=False)
    contract_type = db.Column(db.String(50), nullable=False)
    salary = db.Column(db.Numeric(12, 2), nullable=False)
    subjects = db.Column(db.JSON, default=list)
    role = db.Column(db.String(50), nullable=False)
    department = db.Column(db.String(100), nullable=False, index=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    def to_dict(self):
        return {
            'teacherId': self.teacher_id,
            'email': self.email,
            'firstName': self.first_name,
            'contact': self.contact,
            'department': self.department,
            'role': self.role,
            'subjects': list(self.subjects or []),
            'contractType': self.contract_type,
            'joiningDate': self.joining_date.isoformat() if self.joining_date else None,
        }

    def __repr__(self):
        return f'<Teacher {self.first_name} ({self.teacher_id})>'


class LessonPlan(db.Model):
    __tablename__ = 'lesson_plans'

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(255), nullable=False, index=True)
    department = db.Column(db.String(100))
    subject = db.Column(db.String(100), nullable=False)
    grade = db.Column(db.String(50), nullable=False)
    objectives = db.Column(db.Text, nullable=False)
    materials = db.Column(db.Text)
    warmup = db.Column(db.Text)
    introduction = db.Column(db.Text, nullable=False)
    main_activity = db.Column(db.Text)
    closure = db.Column(db.Text)
    differentiation = db.Column(db.Text)
    formative_assessment = db.Column(db.Text)
    summative_assessment = db.Column(db.Text)
    standards = db.Column(db.Text)
    # Only weighted entries are stored; they total 100
    assessments = db.Column(db.JSON, nullable=False, default=dict)
    units = db.Column(db.JSON, nullable=False, default=list)
    total_units = db.Column(db.Integer, nullable=False, default=0)
    status = db.Column(db.String(32), nullable=False, default='Draft')
    comments = db.Column(db.Text, default='')
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    def to_dict(self):
        return {
            'id': self.id,
            'email': self.email,
            'department': self.department or '',
            'subject': self.subject,
            'grade': self.grade,
            'objectives': self.objectives,
            'materials': self.materials or '',
            'warmup': self.warmup or '',
            'introduction': self.introduction,
            'mainActivity': self.main_activity or '',
            'closure': self.closure or '',
            'differentiation': self.differentiation or '',
            'formativeAssessment': self.formative_assessment or '',
            'summativeAssessment': self.summative_assessment or '',
            'standards': self.standards or '',
            'assessments': dict(self.assessments or {}),
            'units': list(self.units or []),
            'totalUnits': self.total_units,
            'status': self.status,
            'comments': self.comments or '',
        }

    def __repr__(self):
        return f'<LessonPlan {self.subject} {self.grade} [{self.status}]>'


def _money(value):
    # Two decimals whether the value was just assigned or reloaded
    return f"{Decimal(value):.2f}" if value is not None else None


class FeeStructure(db.Model):
    __tablename__ = 'fee_structures'

    id = db.Column(db.Integer, primary_key=True)
    category = db.Column(db.String(100), nullable=False)
    amount = db.Column(db.Numeric(12, 2), nullable=False)
    class_program = db.Column(db.String(100), nullable=False, index=True)
    installment_plans = db.Column(db.JSON, default=list)
    due_date = db.Column(db.Date, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    def to_dict(self):
        return {
            'id': self.id,
            'category': self.category,
            'amount': _money(self.amount),
            'classProgram': self.class_program,
            'installmentPlans': list(self.installment_plans or []),
            'dueDate': self.due_date.isoformat() if self.due_date else None,
        }

    def __repr__(self):
        return f'<FeeStructure {self.category} {self.class_program}>'


class FeeAccount(db.Model):
    __tablename__ = 'fee_accounts'

    id = db.Column(db.Integer, primary_key=True)
    stu_id = db.Column(db.String(20), db.ForeignKey('students.stu_id'), unique=True, nullable=False)
    student_name = db.Column(db.String(150), nullable=False)
    balance = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    family_account_id = db.Column(db.String(50))
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    payments = db.relationship('FeePayment', backref='account', order_by='FeePayment.id')

    def to_dict(self, with_payments=False):
        data = {
            'stuId': self.stu_id,
            'studentName': self.student_name,
            'balance': _money(self.balance),
            'familyAccountId': self.family_account_id or '',
        }
        if with_payments:
            data['payments'] = [p.to_dict() for p in self.payments]
        return data

    def __repr__(self):
        return f'<FeeAccount {self.stu_id} balance={self.balance}>'


class FeePayment(db.Model):
    __tablename__ = 'fee_payments'

    id = db.Column(db.Integer, primary_key=True)
    receipt_id = db.Column(db.String(20), unique=True, nullable=False, index=True)
    stu_id = db.Column(db.String(20), db.ForeignKey('fee_accounts.stu_id'), nullable=False, index=True)
    amount = db.Column(db.Numeric(12, 2), nullable=False)
    late_fee = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    payment_date = db.Column(db.Date, nullable=False, index=True)
    method = db.Column(db.String(50), nullable=False)
    is_partial = db.Column(db.Boolean, nullable=False, default=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    def to_dict(self):
        return {
            'receiptId': self.receipt_id,
            'stuId': self.stu_id,
            'amount': _money(self.amount),
            'lateFee': _money(self.late_fee),
            'date': self.payment_date.isoformat() if self.payment_date else None,
            'method': self.method,
            'isPartial': bool(self.is_partial),
        }

    def __repr__(self):
        return f'<FeePayment {self.receipt_id} {self.amount}>'


class Book(db.Model):
    __tablename__ = 'books'

    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(255), nullable=False)
    author = db.Column(db.String(150), nullable=False)
    classification = db.Column(db.String(50), nullable=False)
    genre = db.Column(db.String(100), nullable=False)
    grade_level = db.Column(db.String(50), nullable=False)
    status = db.Column(db.String(20), nullable=False, default='available', index=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    def to_dict(self):
        return {
            'id': self.id,
            'title': self.title,
            'author': self.author,
            'classification': self.classification,
            'genre': self.genre,
            'gradeLevel': self.grade_level,
            'status': self.status,
        }

    def __repr__(self):
        return f'<Book {self.title} [{self.status}]>'


class BookIssue(db.Model):
    __tablename__ = 'book_issues'

    id = db.Column(db.Integer, primary_key=True)
    book_id = db.Column(db.Integer, db.ForeignKey('books.id'), nullable=False, index=True)
    user_id = db.Column(db.String(100), nullable=False, index=True)
    issue_date = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    due_date = db.Column(db.DateTime, nullable=False)
    return_date = db.Column(db.DateTime)

    book = db.relationship('Book')

    def to_dict(self):
        return {
            'id': self.id,
            'bookId': self.book_id,
            'userId': self.user_id,
            'issueDate': self.issue_date.isoformat() if self.issue_date else None,
            'dueDate': self.due_date.isoformat() if self.due_date else None,
            'returnDate': self.return_date.isoformat() if self.return_date else None,
        }

    def __repr__(self):
        return f'<BookIssue book={self.book_id} user={self.user_id}>'


class Vehicle(db.Model):
    __tablename__ = 'vehicles'

    id = db.Column(db.Integer, primary_key=True)
    license_plate = db.Column(db.String(20), unique=True, nullable=False)
    type = db.Column(db.String(50), nullable=False)
    last_maintenance = db.Column(db.Date, nullable=False)
    gps_installed = db.Column(db.Boolean, nullable=False, default=False)

    def to_dict(self):
        return {
            'id': self.id,
            'licensePlate': self.license_plate,
            'type': self.type,
            'lastMaintenance': self.last_maintenance.isoformat() if self.last_maintenance else None,
            'gpsInstalled': bool(self.gps_installed),
        }

    def __repr__(self):
        return f'<Vehicle {self.license_plate}>'


class TransportRoute(db.Model):
    __tablename__ = 'transport_routes'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False)
    zone = db.Column(db.String(100), nullable=False, index=True)
    schedule = db.Column(db.String(100), nullable=False)
    vehicle_id = db.Column(db.Integer, db.ForeignKey('vehicles.id'), nullable=False)
    capacity = db.Column(db.Integer, nullable=False)

    vehicle = db.relationship('Vehicle')

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'zone': self.zone,
            'schedule': self.schedule,
            'vehicleId': self.vehicle_id,
            'capacity': self.capacity,
        }

    def __repr__(self):
        return f'<TransportRoute {self.name} ({self.zone})>'


class Driver(db.Model):
    __tablename__ = 'drivers'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(150), nullable=False)
    training_completed = db.Column(db.JSON, default=list)
    background_check_status = db.Column(db.String(50), nullable=False)

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'trainingCompleted': list(self.training_completed or []),
            'backgroundCheckStatus': self.background_check_status,
        }

    def __repr__(self):
        return f'<Driver {self.name}>'


class SafetyRecord(db.Model):
    __tablename__ = 'safety_records'

    id = db.Column(db.Integer, primary_key=True)
    stu_id = db.Column(db.String(20), db.ForeignKey('students.stu_id'), nullable=False, index=True)
    route_id = db.Column(db.Integer, db.ForeignKey('transport_routes.id'), nullable=False, index=True)
    boarding_time = db.Column(db.DateTime, nullable=False)
    alighting_time = db.Column(db.DateTime)

    def to_dict(self):
        return {
            'id': self.id,
            'stuId': self.stu_id,
            'routeId': self.route_id,
            'boardingTime': self.boarding_time.isoformat() if self.boarding_time else None,
            'alightingTime': self.alighting_time.isoformat() if self.alighting_time else None,
        }

    def __repr__(self):
        return f'<SafetyRecord {self.stu_id} route={self.route_id}>'


class AppSetting(db.Model):
    __tablename__ = 'app_settings'

    id = db.Column(db.Integer, primary_key=True)
    key = db.Column(db.String(100), unique=True, nullable=False)
    value = db.Column(db.Text)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
