"""
Pipeline de sincronización one-way: MongoDB -> Meilisearch.

Este paquete está diseñado para ejecutarse como job (cron / task scheduler)
o desde el endpoint de sync, nunca en el camino de búsqueda.

Objetivos de diseño:
- Idempotencia: se puede ejecutar N veces sin duplicar documentos.
- Selectivo: solo documentos con flag de indexación y marcados en la ventana.
- Todo-o-nada: un fallo de lectura o de envío aborta la corrida completa.
- Clientes inyectados: nada de handles globales a Mongo/Meilisearch.
"""
