# ulrsim REST API service
# Copyright 2025 sysmocom - s.f.m.c. GmbH <info@sysmocom.de>
# SPDX-License-Identifier: AGPL-3.0-or-later
import os
import sys
import traceback

from flask import Flask, request
from flask_restx import Api, Resource, fields
from werkzeug.middleware.proxy_fix import ProxyFix

sys.path.append(os.path.realpath(os.path.join(os.path.dirname(__file__), '../lib')))
from logtool import LogTool
from s6a.simulator import UlrSimulator
from utils import InvalidPLMN, plmn_from_hex


def create_app(simulator: UlrSimulator, config: dict, logTool: LogTool) -> Flask:
    apiService = Flask(__name__)
    apiService.wsgi_app = ProxyFix(apiService.wsgi_app)
    corsOrigin = config.get('api', {}).get('cors_origin', 'http://localhost:3000')

    api = Api(apiService, version='1.0', title='ulrsim API',
        description='Restful API for driving the S6a Update-Location simulator',
        doc='/docs/'
    )

    ns_client = api.namespace('diameter/client', description='ulrsim Diameter Client Functions')
    ns_server = api.namespace('diameter/server', description='ulrsim Diameter Server Functions')

    ULR_model = api.model('ULR', {
        'imsi': fields.String(required=True, description='IMSI to register', example='001010123456789'),
        'plmnId': fields.String(required=False, description='Visited PLMN ID as 3 octets of hex', example='00f110'),
        'ratType': fields.Integer(required=False, description='RAT-Type AVP value', example=1004),
        'ulrFlags': fields.Integer(required=False, description='ULR-Flags AVP value', example=34),
    })

    @apiService.errorhandler(404)
    def page_not_found(e):
        return {"Result": "Not Found"}, 404

    @apiService.after_request
    def apply_caching(response):
        response.headers["Access-Control-Allow-Origin"] = corsOrigin
        response.headers["Access-Control-Allow-Methods"] = "GET,POST,DELETE,OPTIONS"
        response.headers["Access-Control-Allow-Headers"] = "Content-Type, Content-Length, X-Requested-With"
        return response

    @ns_client.route('/status')
    class Ulrsim_Client_Status(Resource):
        def get(self):
            '''Get Diameter client state and the most recent ULR result'''
            return simulator.client_status(), 200

    @ns_client.route('/sendULR')
    class Ulrsim_Client_SendULR(Resource):
        @ns_client.doc('Send an Update Location Request')
        @ns_client.expect(ULR_model)
        def post(self):
            '''Send an Update Location Request to the simulated HSS'''
            json_data = request.get_json(silent=True) or {}
            try:
                imsi = json_data.get('imsi')
                if not imsi:
                    return {"message": "Error sending ULR: imsi is required"}, 400
                plmnId = plmn_from_hex(str(json_data.get('plmnId', simulator.defaultPlmnId)))
                ratType = int(json_data.get('ratType', simulator.defaultRatType))
                ulrFlags = int(json_data.get('ulrFlags', simulator.defaultUlrFlags))
            except (InvalidPLMN, TypeError, ValueError) as e:
                return {"message": f"Error sending ULR: {e}"}, 400

            logTool.log(service='API', level='debug', message=f"[API] sendULR for IMSI {imsi}")
            try:
                result = simulator.client.send_ulr(str(imsi), plmnId, ratType, ulrFlags)
            except Exception as e:
                logTool.log(service='API', level='error', message=f"[API] Error sending ULR: {traceback.format_exc()}")
                return {"message": f"Error sending ULR: {e}"}, 500
            if 'sessionId' not in result:
                return result, 400
            return result, 200

    @ns_client.route('/results')
    class Ulrsim_Client_Results(Resource):
        def get(self):
            '''Get the recorded ULR results, oldest first'''
            return [result.model_dump() for result in simulator.client.results()], 200

    @ns_client.route('/session/<string:session_id>')
    class Ulrsim_Client_Session(Resource):
        def delete(self, session_id):
            '''Cancel an outstanding ULR'''
            if simulator.client.cancel(session_id):
                return {"message": f"Session {session_id} cancelled"}, 200
            return {"message": f"No outstanding ULR for session {session_id}"}, 404

    @ns_server.route('/status')
    class Ulrsim_Server_Status(Resource):
        def get(self):
            '''Get Diameter server state'''
            return simulator.server_status(), 200

    return apiService


if __name__ == '__main__':
    from banners import Banners
    from ulrsim_config import config

    logTool = LogTool(config)
    logFile = config.get('logging', {}).get('logfiles', {}).get('api_logging_file')
    if logFile:
        logTool.setupFileLogger(loggerName='ApiService', logFilePath=logFile)
    print(Banners().apiService())

    simulator = UlrSimulator(config, logTool, logTool.redisMessaging)
    simulator.start()
    apiService = create_app(simulator, config, logTool)
    apiService.run(debug=False,
                   host=config.get('api', {}).get('listen_ip', '0.0.0.0'),
                   port=int(config.get('api', {}).get('listen_port', 8080)))
