from taxengine.cli import main

raise SystemExit(main())
