import os
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

from latelier import create_app

app = create_app()

if __name__ == '__main__':
    port = int(os.environ.get("PORT", 7860))
    app.run(host='0.0.0.0', port=port, debug=True, use_reloader=False)
