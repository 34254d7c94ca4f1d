from agency_api.main import run

run()
