# ==============================================================================
# run.py
# ------------------------------------------------------------------------------
# The main entry point to launch the Flask application.
# ==============================================================================

from buyer_ledger import create_app, db
from buyer_ledger.models import Buyer, ImportRun

# Create the Flask application instance using the factory function
app = create_app()

@app.shell_context_processor
def make_shell_context():
    """Provides a shell context for the `flask shell` command."""
    return {
        'db': db,
        'Buyer': Buyer,
        'ImportRun': ImportRun
    }

if __name__ == '__main__':
    app.run(debug=True)
