'''
AcademiaPro Backend: the API of the AcademiaPro tutoring-services marketplace.
'''
