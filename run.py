# run.py
import os
from food_donation import create_app

# FLASK_DEBUG=1 enables the debugger and reloader; leave it unset in production.
debug_mode = os.environ.get('FLASK_DEBUG') == '1'

app = create_app()

if __name__ == '__main__':
    app.run(debug=debug_mode, port=int(os.environ.get('PORT', 5000)))
