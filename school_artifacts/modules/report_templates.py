"""
Report Templates Module - School Artifacts Service

Static column contracts for the platform's standard reports. Callers ask for
a report by name ("balancete", "invoices", ...) instead of rebuilding the
column schema every time.
"""

from typing import Dict, List

from .export_types import ColumnAlign, ColumnFormat, ExportColumn

_CURRENCY = ColumnFormat.CURRENCY
_DATE = ColumnFormat.DATE
_PERCENTAGE = ColumnFormat.PERCENTAGE
_RIGHT = ColumnAlign.RIGHT


REPORT_TEMPLATES: Dict[str, Dict] = {
    # Financial reports
    'balancete': {
        'title': 'Balancete de Verificação',
        'columns': [
            ExportColumn('code', 'Código', width=15),
            ExportColumn('name', 'Conta', width=40),
            ExportColumn('previousBalance', 'Saldo Anterior', format=_CURRENCY, align=_RIGHT, width=18),
            ExportColumn('debits', 'Débitos', format=_CURRENCY, align=_RIGHT, width=18),
            ExportColumn('credits', 'Créditos', format=_CURRENCY, align=_RIGHT, width=18),
            ExportColumn('currentBalance', 'Saldo Atual', format=_CURRENCY, align=_RIGHT, width=18),
        ],
    },

    'dre': {
        'title': 'Demonstração do Resultado do Exercício',
        'columns': [
            ExportColumn('description', 'Descrição', width=50),
            ExportColumn('currentPeriod', 'Período Atual', format=_CURRENCY, align=_RIGHT, width=20),
            ExportColumn('previousPeriod', 'Período Anterior', format=_CURRENCY, align=_RIGHT, width=20),
            ExportColumn('variation', 'Variação %', format=_PERCENTAGE, align=_RIGHT, width=15),
        ],
    },

    'journalEntries': {
        'title': 'Livro Diário',
        'columns': [
            ExportColumn('entryNumber', 'Nº', width=10),
            ExportColumn('date', 'Data', format=_DATE, width=12),
            ExportColumn('accountCode', 'Conta', width=15),
            ExportColumn('accountName', 'Nome da Conta', width=30),
            ExportColumn('description', 'Histórico', width=35),
            ExportColumn('debit', 'Débito', format=_CURRENCY, align=_RIGHT, width=15),
            ExportColumn('credit', 'Crédito', format=_CURRENCY, align=_RIGHT, width=15),
        ],
    },

    'payroll': {
        'title': 'Folha de Pagamento',
        'columns': [
            ExportColumn('employeeName', 'Funcionário', width=25),
            ExportColumn('department', 'Departamento', width=15),
            ExportColumn('grossAmount', 'Bruto', format=_CURRENCY, align=_RIGHT, width=15),
            ExportColumn('inss', 'INSS', format=_CURRENCY, align=_RIGHT, width=12),
            ExportColumn('irrf', 'IRRF', format=_CURRENCY, align=_RIGHT, width=12),
            ExportColumn('otherDeductions', 'Outros Desc.', format=_CURRENCY, align=_RIGHT, width=12),
            ExportColumn('netAmount', 'Líquido', format=_CURRENCY, align=_RIGHT, width=15),
        ],
    },

    'fiscalDocuments': {
        'title': 'Relação de Notas Fiscais',
        'columns': [
            ExportColumn('documentNumber', 'Número', width=15),
            ExportColumn('series', 'Série', width=8),
            ExportColumn('issueDate', 'Emissão', format=_DATE, width=12),
            ExportColumn('recipientName', 'Destinatário', width=30),
            ExportColumn('recipientDocument', 'CPF/CNPJ', width=18),
            ExportColumn('totalAmount', 'Valor Total', format=_CURRENCY, align=_RIGHT, width=15),
            ExportColumn('status', 'Status', width=12),
        ],
    },

    'taxWithholdings': {
        'title': 'Retenções de Impostos (DIRF)',
        'columns': [
            ExportColumn('beneficiaryName', 'Beneficiário', width=25),
            ExportColumn('beneficiaryDocument', 'CPF/CNPJ', width=18),
            ExportColumn('taxType', 'Imposto', width=10),
            ExportColumn('baseAmount', 'Base', format=_CURRENCY, align=_RIGHT, width=15),
            ExportColumn('rate', 'Alíquota', format=_PERCENTAGE, align=_RIGHT, width=10),
            ExportColumn('amount', 'Retido', format=_CURRENCY, align=_RIGHT, width=15),
            ExportColumn('dueDate', 'Vencimento', format=_DATE, width=12),
        ],
    },

    # Academic reports
    'students': {
        'title': 'Lista de Alunos',
        'columns': [
            ExportColumn('name', 'Nome', width=30),
            ExportColumn('email', 'E-mail', width=25),
            ExportColumn('phone', 'Telefone', width=15),
            ExportColumn('enrollmentDate', 'Matrícula', format=_DATE, width=12),
            ExportColumn('course', 'Curso', width=20),
            ExportColumn('status', 'Status', width=12),
        ],
    },

    'invoices': {
        'title': 'Relatório de Faturas',
        'columns': [
            ExportColumn('invoiceNumber', 'Nº Fatura', width=12),
            ExportColumn('studentName', 'Aluno', width=25),
            ExportColumn('dueDate', 'Vencimento', format=_DATE, width=12),
            ExportColumn('amount', 'Valor', format=_CURRENCY, align=_RIGHT, width=15),
            ExportColumn('paidAt', 'Pago em', format=_DATE, width=12),
            ExportColumn('status', 'Status', width=12),
            ExportColumn('paymentMethod', 'Método', width=12),
        ],
    },
}


def get_report_template(name: str) -> Dict:
    """
    Look up a report template by name.

    Args:
        name (str): Template identifier, e.g. 'balancete'

    Returns:
        Dict: {'title': str, 'columns': List[ExportColumn]}

    Raises:
        KeyError: If no template has that name
    """
    try:
        return REPORT_TEMPLATES[name]
    except KeyError:
        raise KeyError(f"Unknown report template '{name}'. Available: {', '.join(REPORT_TEMPLATES)}")


def get_template_columns(name: str) -> List[ExportColumn]:
    return list(get_report_template(name)['columns'])
