from flask import Flask, request, jsonify, send_file
from pathlib import Path
from decimal import InvalidOperation
from datetime import date
import logging
import sys, os

sys.path.insert(0, str(Path(__file__).parent / 'src'))

from api.employee_directory import MockEmployeeDirectory
from processors.payroll_calculator import PayrollCalculator, bracket_breakdown
from processors.payslip_generator import PayslipGenerator, build_payroll_items
from processors.bonus_calculator import Attendance, supplemental_earnings
from processors.cnas_declaration_generator import CNASDeclarationGenerator
from processors.das_generator import DASGenerator
from database.db import init_db, SessionLocal
from database.repository import PayrollRepository
from models.payroll import PayrollInput, PayrollValidationError, Payslip
from models.payroll_config import PayrollConfig, brackets_to_list
from config.settings import SECRET_KEY, LOG_LEVEL, DEBUG

logging.basicConfig(
    level=getattr(logging, LOG_LEVEL),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

app = Flask(__name__)
app.config['SECRET_KEY'] = SECRET_KEY
app.config['DEBUG'] = DEBUG

payroll_config = PayrollConfig.from_settings()
calculator = PayrollCalculator(payroll_config)
directory = MockEmployeeDirectory()

init_db()


def parse_payroll_input(data):
    """Build a PayrollInput from a JSON body; returns (input, error_response)"""
    if not isinstance(data, dict):
        return None, (jsonify({'success': False, 'message': 'JSON object expected'}), 400)
    if data.get('baseSalary') is None and data.get('base_salary') is None:
        return None, (jsonify({'success': False, 'errors': {'baseSalary': 'Base salary is required'}}), 422)

    try:
        return PayrollInput.from_dict(data), None
    except (InvalidOperation, TypeError, ValueError) as e:
        return None, (jsonify({'success': False, 'message': f'Malformed payroll input: {e}'}), 400)


def parse_earnings(data, payroll_input, on_date):
    """
    Itemized supplemental earnings requested alongside the payroll input.

    The body may carry workingDays, overtimeEntries, performanceBonus and
    hireDate; without hireDate the directory's hire date is used for the
    seniority bonus when the employee is known.
    """
    hire_date = data.get('hireDate')
    if hire_date:
        hire_date = date.fromisoformat(hire_date)
    elif payroll_input.employee_id:
        try:
            hire_date = directory.get_employee(payroll_input.employee_id).hire_date
        except ValueError:
            hire_date = None

    return supplemental_earnings(
        payroll_input.base_salary, payroll_config,
        hire_date=hire_date,
        on_date=on_date,
        attendance=Attendance.from_dict(data),
        performance_bonus=data.get('performanceBonus', 0)
    )


def period_start(data):
    """First day of the requested pay period, today when none is given"""
    year, month = data.get('year'), data.get('month')
    if year in (None, "") or month in (None, ""):
        return date.today()
    return date(int(year), int(month), 1)


def run_to_dict(run):
    return {
        'id': run.id,
        'employeeId': run.employee_id,
        'employeeName': run.employee.name if run.employee else None,
        'year': run.year,
        'month': run.month,
        'reference': run.reference,
        'paymentDate': run.payment_date.isoformat() if run.payment_date else None,
        'calculation': PayrollRepository.load_calculation(run).to_dict(),
        'earnings': [item.to_dict() for item in PayrollRepository.load_earnings(run)]
    }


# ============================================================================
# API Endpoints
# ============================================================================

@app.route('/api/payroll/config')
def get_payroll_config():
    """Current rates and IRG brackets"""
    return jsonify({
        'smig': str(payroll_config.smig),
        'employeeRate': str(payroll_config.employee_rate),
        'employerRate': str(payroll_config.employer_rate),
        'mealAllowancePerDay': str(payroll_config.meal_allowance_per_day),
        'brackets': brackets_to_list(payroll_config.brackets)
    })


@app.route('/api/payroll/calculate', methods=['POST'])
def calculate_payroll():
    """Compute a payroll breakdown without storing it"""
    data = request.get_json(silent=True)
    payroll_input, error = parse_payroll_input(data)
    if error:
        return error

    try:
        earnings = parse_earnings(data, payroll_input, period_start(data))
    except (InvalidOperation, KeyError, TypeError, ValueError) as e:
        return jsonify({'success': False, 'message': f'Malformed earnings: {e}'}), 400

    try:
        calculation = calculator.calculate(payroll_input, earnings)
    except PayrollValidationError as e:
        return jsonify({'success': False, 'errors': e.to_dict()}), 422

    shares = bracket_breakdown(calculation.taxable_income, payroll_config.brackets)
    return jsonify({
        'success': True,
        'calculation': calculation.to_dict(),
        'items': [item.to_dict() for item in build_payroll_items(calculation, earnings)],
        'taxBrackets': [
            {'rate': str(s.bracket.rate), 'portion': str(s.portion), 'tax': str(s.tax)}
            for s in shares
        ] if payroll_input.apply_progressive_tax else []
    })


@app.route('/api/payroll/runs', methods=['POST'])
def save_payroll_run():
    """Compute a payroll breakdown and store it in the payroll history"""
    data = request.get_json(silent=True)
    payroll_input, error = parse_payroll_input(data)
    if error:
        return error

    try:
        earnings = parse_earnings(data, payroll_input, period_start(data))
    except (InvalidOperation, KeyError, TypeError, ValueError) as e:
        return jsonify({'success': False, 'message': f'Malformed earnings or period: {e}'}), 400

    try:
        calculation = calculator.calculate(payroll_input, earnings)
    except PayrollValidationError as e:
        return jsonify({'success': False, 'errors': e.to_dict()}), 422

    db = SessionLocal()
    try:
        repo = PayrollRepository(db)
        employee_id = payroll_input.employee_id
        if employee_id and not repo.get_employee(employee_id):
            try:
                repo.save_employee(directory.get_employee(employee_id))
            except ValueError:
                logger.info("Employee %s is not in the directory", employee_id)

        payment_date = data.get('paymentDate')
        run = repo.save_payroll_calculation(
            calculation,
            employee_id,
            data.get('year'),
            data.get('month'),
            work_days=payroll_input.work_days,
            payment_date=date.fromisoformat(payment_date) if payment_date else None,
            payment_method=data.get('paymentMethod', 'Bank Transfer'),
            reference=data.get('reference'),
            earnings=earnings
        )
        return jsonify({'success': True, 'run': run_to_dict(run)}), 201
    except ValueError as e:
        # MissingContextError or a malformed period
        return jsonify({'success': False, 'message': str(e)}), 400
    finally:
        db.close()


@app.route('/api/employees')
def get_employees():
    """Get list of employees"""
    return jsonify([
        {
            'employeeId': e.employee_id,
            'name': e.name,
            'department': e.department,
            'position': e.position,
            'hireDate': e.hire_date.isoformat() if e.hire_date else None,
            'salary': str(e.salary if e.salary is not None else payroll_config.smig)
        }
        for e in directory.get_all_employees()
    ])


@app.route('/api/employees/<employee_id>/payslips')
def get_employee_payslips(employee_id):
    """Payroll history for one employee"""
    year = request.args.get('year', type=int)
    db = SessionLocal()
    try:
        runs = PayrollRepository(db).get_payroll_history(employee_id, year)
        return jsonify([run_to_dict(run) for run in runs])
    finally:
        db.close()


@app.route('/api/payroll/runs/<int:run_id>/payslip')
def download_payslip(run_id):
    """Render a stored payroll run as a payslip workbook"""
    db = SessionLocal()
    try:
        run = PayrollRepository(db).get_payroll_run_by_id(run_id)
        if not run:
            return jsonify({'error': 'Payroll run not found'}), 404

        calculation = PayrollRepository.load_calculation(run)
        payslip = Payslip(
            employee_id=run.employee_id,
            employee_name=run.employee.name if run.employee else run.employee_id,
            month=run.month,
            year=run.year,
            calculation=calculation,
            payment_date=run.payment_date,
            payment_method=run.payment_method or 'Bank Transfer',
            reference=run.reference or '',
            items=build_payroll_items(calculation, PayrollRepository.load_earnings(run))
        )
        filepath = PayslipGenerator().generate(payslip)
    finally:
        db.close()

    return send_file(filepath, as_attachment=True)


@app.route('/api/payroll/cnas-declaration')
def download_cnas_declaration():
    """Monthly CNAS declaration workbook"""
    year = request.args.get('year', type=int)
    month = request.args.get('month', type=int)
    if not year or not month:
        return jsonify({'error': 'year and month are required'}), 400

    db = SessionLocal()
    try:
        filepath = CNASDeclarationGenerator(PayrollRepository(db)).generate(year, month)
    except ValueError as e:
        return jsonify({'error': str(e)}), 404
    finally:
        db.close()

    return send_file(filepath, as_attachment=True)


@app.route('/api/payroll/das')
def download_das():
    """Annual salary declaration (DAS) workbook"""
    year = request.args.get('year', type=int)
    if not year:
        return jsonify({'error': 'year is required'}), 400

    db = SessionLocal()
    try:
        filepath = DASGenerator(PayrollRepository(db)).generate(year)
    except ValueError as e:
        return jsonify({'error': str(e)}), 404
    finally:
        db.close()

    return send_file(filepath, as_attachment=True)


if __name__ == '__main__':
    port = int(os.getenv('PORT', 5000))
    app.run(host='0.0.0.0', port=port)
