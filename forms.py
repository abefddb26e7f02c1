from flask_wtf import FlaskForm
from wtforms import StringField, SubmitField, TextAreaField
from wtforms.validators import DataRequired, ValidationError

from records import is_valid_address


class ChainAddress:
    """Rejects values that are not checksum-normalizable chain addresses."""

    def __init__(self, message='Invalid Ethereum address'):
        self.message = message

    def __call__(self, form, field):
        if not is_valid_address(field.data):
            raise ValidationError(self.message)


class SearchForm(FlaskForm):
    # validity is checked by the view: a bad address clears results silently
    address = StringField('Patient Address')
    submit = SubmitField('Search')


class AddRecordForm(FlaskForm):
    patient_address = StringField('Patient Address', validators=[
        DataRequired(message='Patient address is required'), ChainAddress()])
    patient_name = StringField('Patient Name', validators=[DataRequired(message='Patient name is required')])
    diagnosis = TextAreaField('Diagnosis', validators=[DataRequired(message='Diagnosis is required')])
    treatment = TextAreaField('Treatment', validators=[DataRequired(message='Treatment is required')])
    submit = SubmitField('Add Record')
