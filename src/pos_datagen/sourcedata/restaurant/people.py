"""Employees and customers of the demo restaurant."""

EMPLOYEES = [
    {"id": "EMP_MANAGER", "name": "Dana Whitfield", "role": "MANAGER"},
    {"id": "EMP_SERVER_1", "name": "Marcus Lee", "role": "EMPLOYEE"},
    {"id": "EMP_SERVER_2", "name": "Priya Raman", "role": "EMPLOYEE"},
    {"id": "EMP_SERVER_3", "name": "Jordan Ellis", "role": "EMPLOYEE"},
    {"id": "EMP_BARTENDER", "name": "Sam Okafor", "role": "EMPLOYEE"},
]

CUSTOMERS = [
    {"id": "CUST_001", "firstName": "Avery", "lastName": "Collins",
     "email": "avery.collins@example.com"},
    {"id": "CUST_002", "firstName": "Blake", "lastName": "Nguyen",
     "email": "blake.nguyen@example.com"},
    {"id": "CUST_003", "firstName": "Casey", "lastName": "Romero",
     "email": "casey.romero@example.com"},
    {"id": "CUST_004", "firstName": "Drew", "lastName": "Patel",
     "email": "drew.patel@example.com"},
    {"id": "CUST_005", "firstName": "Emerson", "lastName": "Kowalski",
     "email": "emerson.kowalski@example.com"},
    {"id": "CUST_006", "firstName": "Finley", "lastName": "Adeyemi",
     "email": "finley.adeyemi@example.com"},
    {"id": "CUST_007", "firstName": "Harper", "lastName": "Lindqvist",
     "email": "harper.lindqvist@example.com"},
    {"id": "CUST_008", "firstName": "Jamie", "lastName": "Castillo",
     "email": "jamie.castillo@example.com"},
]
