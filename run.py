#!/usr/bin/env python3
"""Development server runner for the backup API"""
import os
from worldsnap import create_app

if __name__ == '__main__':
    # Development config: debug logging, scheduler runs in the reloader child
    app = create_app('development')

    host = os.environ.get('HOST', '127.0.0.1')
    port = int(os.environ.get('PORT', 5000))
    app.run(host=host, port=port, debug=True)
