import pytest
from decimal import Decimal

from app import app


@pytest.fixture
def client():
    app.config['TESTING'] = True
    with app.test_client() as client:
        yield client


def test_calculate_endpoint(client):
    response = client.post('/api/payroll/calculate', json={
        'baseSalary': 100000,
        'transportAllowance': 2500,
        'applyMandatoryContribution': True,
        'applyProgressiveTax': True,
    })
    assert response.status_code == 200
    body = response.get_json()
    assert Decimal(body['calculation']['grossSalary']) == Decimal('102500')
    assert Decimal(body['calculation']['incomeTax']) == Decimal('12655')
    assert Decimal(body['calculation']['netSalary']) == Decimal('80620')
    assert [Decimal(b['tax']) for b in body['taxBrackets']] == [0, 12655, 0]
    assert sum(Decimal(i['amount']) for i in body['items']) == Decimal('80620')


def test_calculate_reports_every_invalid_field(client):
    response = client.post('/api/payroll/calculate', json={
        'baseSalary': 19999, 'bonuses': -10, 'workDays': 40
    })
    assert response.status_code == 422
    assert set(response.get_json()['errors']) == {'baseSalary', 'bonuses', 'workDays'}


def test_calculate_requires_base_salary(client):
    response = client.post('/api/payroll/calculate', json={'bonuses': 10})
    assert response.status_code == 422
    assert 'baseSalary' in response.get_json()['errors']


def test_calculate_rejects_malformed_amounts(client):
    response = client.post('/api/payroll/calculate', json={'baseSalary': 'lots'})
    assert response.status_code == 400


def test_config_endpoint(client):
    body = client.get('/api/payroll/config').get_json()
    assert body['smig'] == '20000'
    assert len(body['brackets']) == 3


def test_employees_endpoint(client):
    employees = client.get('/api/employees').get_json()
    assert {e['employeeId'] for e in employees} >= {'1', '2', '3'}


def test_save_run_and_history(client):
    response = client.post('/api/payroll/runs', json={
        'employeeId': '3', 'year': 2031, 'month': 2,
        'baseSalary': 65000, 'transportAllowance': 2500,
        'paymentDate': '2031-02-28'
    })
    assert response.status_code == 201
    run = response.get_json()['run']
    assert run['employeeName'] == 'Michael Johnson'

    history = client.get('/api/employees/3/payslips?year=2031').get_json()
    assert [r['month'] for r in history] == [2]
    assert history[0]['calculation'] == run['calculation']

    payslip = client.get(f"/api/payroll/runs/{run['id']}/payslip")
    assert payslip.status_code == 200
    assert payslip.data[:2] == b'PK'

    declaration = client.get('/api/payroll/cnas-declaration?year=2031&month=2')
    assert declaration.status_code == 200


def test_save_run_without_period_is_rejected(client):
    response = client.post('/api/payroll/runs', json={'employeeId': '1', 'baseSalary': 30000})
    assert response.status_code == 400


def test_save_run_for_unknown_employee_is_rejected(client):
    response = client.post('/api/payroll/runs', json={
        'employeeId': 'nobody', 'year': 2031, 'month': 1, 'baseSalary': 30000
    })
    assert response.status_code == 400


def test_missing_payslip_and_declaration(client):
    assert client.get('/api/payroll/runs/999999/payslip').status_code == 404
    assert client.get('/api/payroll/cnas-declaration?year=1999&month=1').status_code == 404
    assert client.get('/api/payroll/cnas-declaration').status_code == 400


@pytest.mark.parametrize("amount", ["NaN", "Infinity"])
def test_calculate_refuses_non_finite_amounts(client, amount):
    response = client.post('/api/payroll/calculate', json={'baseSalary': amount})
    assert response.status_code == 400
    response = client.post('/api/payroll/calculate', json={'baseSalary': 30000, 'bonuses': amount})
    assert response.status_code == 400


def test_calculate_honours_string_toggles(client):
    response = client.post('/api/payroll/calculate', json={
        'baseSalary': 50000, 'applyMandatoryContribution': 'false'
    })
    assert response.status_code == 200
    assert Decimal(response.get_json()['calculation']['employeeContribution']) == 0


@pytest.mark.parametrize("body", [
    {'baseSalary': 50000, 'applyProgressiveTax': 'maybe'},
    {'baseSalary': 50000, 'workDays': 31.9},
    {'baseSalary': 50000, 'overtimeEntries': [{'hours': -2}]},
    {'baseSalary': 50000, 'overtimeEntries': [{'rateType': 'WEEKEND'}]},
    {'baseSalary': 50000, 'workingDays': 'many'},
])
def test_calculate_refuses_malformed_fields(client, body):
    assert client.post('/api/payroll/calculate', json=body).status_code == 400


def test_calculate_itemizes_supplemental_earnings(client):
    # 173330 / 173.33 hours = 1000 per hour
    response = client.post('/api/payroll/calculate', json={
        'baseSalary': 173330,
        'workingDays': 20,
        'overtimeEntries': [{'hours': 2, 'rateType': 'REGULAR'}],
        'performanceBonus': 1000,
    })
    assert response.status_code == 200
    body = response.get_json()
    assert Decimal(body['calculation']['bonuses']) == Decimal('10000')
    assert Decimal(body['calculation']['grossSalary']) == Decimal('183330')
    assert [i['type'] for i in body['items']][:4] == [
        'BASE_SALARY', 'PERFORMANCE_BONUS', 'MEAL_ALLOWANCE', 'OVERTIME'
    ]
    assert sum(Decimal(i['amount']) for i in body['items']) == \
        Decimal(body['calculation']['netSalary'])


def test_calculate_reports_negative_performance_bonus(client):
    response = client.post('/api/payroll/calculate', json={
        'baseSalary': 50000, 'performanceBonus': -100
    })
    assert response.status_code == 422
    assert response.get_json()['errors'] == {'performanceBonus': 'Amount must not be negative'}


def test_saved_run_keeps_its_earnings(client):
    response = client.post('/api/payroll/runs', json={
        'employeeId': '2', 'year': 2032, 'month': 6,
        'baseSalary': 85000, 'workingDays': 21
    })
    assert response.status_code == 201
    earnings = response.get_json()['run']['earnings']
    # Hired 2021: eleven years of service earn 5%
    assert earnings == [
        {'type': 'SENIORITY_BONUS', 'amount': '4250', 'description': "Prime d'ancienneté"},
        {'type': 'MEAL_ALLOWANCE', 'amount': '6300', 'description': 'Indemnité de repas'},
    ]

    das = client.get('/api/payroll/das?year=2032')
    assert das.status_code == 200
    assert das.data[:2] == b'PK'


def test_das_requires_year_and_runs(client):
    assert client.get('/api/payroll/das').status_code == 400
    assert client.get('/api/payroll/das?year=1999').status_code == 404
