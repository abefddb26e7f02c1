import logging

from flask import Flask, abort, current_app, jsonify, redirect, render_template, request, session, url_for
from flask_bootstrap import Bootstrap

from config import Config
from contract import open_session
from forms import AddRecordForm, SearchForm
from records import is_valid_address, query_records
from view import BrowserRegistry, RecordBrowser

EXTENSION = 'medical_records'


def create_app(config_object=Config, chain_session=None):
    """
    Builds the Flask app.
    chain_session is an already opened contract Session; when omitted it is
    opened from the provider configuration if CONNECT_ON_STARTUP is set.
    """
    app = Flask(__name__)
    app.config.from_object(config_object)
    app.logger.setLevel(app.config['LOG_LEVEL'])
    Bootstrap(app)

    setup_error = None
    if chain_session is None and app.config.get('CONNECT_ON_STARTUP'):
        try:
            chain_session = open_session(app.config)
        except Exception as e:
            app.logger.error(f"Error connecting to provider or contract: {e}")
            setup_error = str(e)
    elif chain_session is None:
        setup_error = 'No Ethereum provider configured'

    def new_browser():
        return RecordBrowser(
            chain_session,
            timestamp_format=app.config['TIMESTAMP_FORMAT'],
            tx_timeout=app.config['TX_RECEIPT_TIMEOUT'],
        )

    app.extensions[EXTENSION] = {
        'session': chain_session,
        'error': setup_error,
        'browsers': BrowserRegistry(
            new_browser,
            max_clients=app.config['MAX_CLIENTS'],
            idle_seconds=app.config['CLIENT_IDLE_SECONDS'],
        ),
    }
    register_routes(app)
    return app


def chain_state():
    return current_app.extensions[EXTENSION]


def get_browser():
    """Returns the RecordBrowser of the current client, creating one if needed."""
    registry = chain_state()['browsers']
    if 'client_id' not in session:
        session['client_id'] = registry.new_client_id()
    return registry.get(session['client_id'])


def render_page(browser, record_form=None, status=200):
    search_form = SearchForm(formdata=None, address=browser.search_input)
    if browser.is_owner and record_form is None:
        record_form = AddRecordForm(formdata=None)
    return render_template(
        'index.html',
        browser=browser,
        search_form=search_form,
        record_form=record_form if browser.is_owner else None,
    ), status


def register_routes(app):

    @app.route('/')
    def index():
        state = chain_state()
        if state['session'] is None:
            return render_template('no_provider.html', error=state['error']), 503
        return render_page(get_browser())

    @app.route('/search', methods=['POST'])
    def search():
        if chain_state()['session'] is None:
            return redirect(url_for('index'))
        form = SearchForm()
        browser = get_browser()
        if form.validate_on_submit():
            browser.search(form.address.data)
        return redirect(url_for('index'))

    @app.route('/records', methods=['POST'])
    def add_record():
        if chain_state()['session'] is None:
            return redirect(url_for('index'))
        browser = get_browser()
        if not browser.is_owner:
            return redirect(url_for('index'))

        form = AddRecordForm()
        if browser.submit_record(form):
            app.logger.info(f"Record added for {form.patient_address.data}")
            return redirect(url_for('index'))
        # keep the submitted values and field errors on the page
        return render_page(browser, record_form=form, status=200 if browser.error else 400)

    @app.route('/error/dismiss', methods=['POST'])
    def dismiss_error():
        if chain_state()['session'] is not None:
            get_browser().dismiss_error()
        return redirect(url_for('index'))

    @app.route('/api/session')
    def api_session():
        chain_session = chain_state()['session']
        if chain_session is None:
            return jsonify({'error': chain_state()['error']}), 503
        return jsonify({
            'account': chain_session.account,
            'owner': chain_session.owner,
            'isOwner': chain_session.is_owner,
            'contract': chain_session.contract.address,
            'networkId': chain_session.network_id,
        })

    @app.route('/api/records/<address>')
    def api_records(address):
        chain_session = chain_state()['session']
        if chain_session is None:
            return jsonify({'error': chain_state()['error']}), 503
        if not is_valid_address(address):
            abort(400, description='Invalid Ethereum address')
        try:
            page = query_records(chain_session, address, app.config['TIMESTAMP_FORMAT'])
        except Exception as e:
            app.logger.error(f"Error loading records for {address}: {e}")
            return jsonify({'error': f"Failed to load records: {e}"}), 502
        return jsonify(page.to_dict())

    @app.errorhandler(400)
    def bad_request(e):
        # also covers Flask-WTF's CSRFError
        if request.path.startswith('/api/'):
            return jsonify({'error': e.description}), 400
        app.logger.warning(f"Rejected request to {request.path}: {e.description}")
        if chain_state()['session'] is not None:
            get_browser().error = f"Request rejected: {e.description}"
        return redirect(url_for('index'))


if __name__ == '__main__':
    logging.basicConfig(
        level=Config.LOG_LEVEL,
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
    )
    app = create_app()
    app.run(debug=True)
