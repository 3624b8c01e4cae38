import os

# Set the FLASK_ENV to 'testing' for all test files
os.environ["FLASK_ENV"] = "testing"

# Set the TESTING flag
os.environ["TESTING"] = "true"
